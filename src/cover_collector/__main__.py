import sys

from cover_collector.cli import main

sys.exit(main())
