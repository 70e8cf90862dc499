from __future__ import annotations

import enum
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from cover_collector.exceptions import ParseError


@dataclass(frozen=True)
class AssetRecord:
    """One entry of a policy's asset listing."""

    asset: str
    quantity: str

    @classmethod
    def from_api(cls, payload: Any) -> AssetRecord:
        if not isinstance(payload, dict) or not isinstance(payload.get("asset"), str):
            raise ParseError(
                "asset listing entry has no 'asset' field",
                context={"entry": payload},
            )
        return cls(asset=payload["asset"], quantity=str(payload.get("quantity", "")))

    def parsed_quantity(self) -> int:
        try:
            return int(self.quantity.strip())
        except ValueError as exc:
            raise ParseError(
                f"malformed quantity {self.quantity!r} for asset {self.asset}",
                context={"asset": self.asset, "quantity": self.quantity},
            ) from exc


@dataclass(frozen=True)
class AssetDetails:
    asset: str
    onchain_metadata: dict[str, Any] | None = None

    @classmethod
    def from_api(cls, asset: str, payload: Any) -> AssetDetails:
        if not isinstance(payload, dict):
            raise ParseError(
                f"asset details for {asset} are not a JSON object",
                context={"asset": asset},
            )
        metadata = payload.get("onchain_metadata")
        return cls(
            asset=str(payload.get("asset") or asset),
            onchain_metadata=metadata if isinstance(metadata, dict) else None,
        )

    @property
    def display_name(self) -> str:
        if self.onchain_metadata and isinstance(self.onchain_metadata.get("name"), str):
            return self.onchain_metadata["name"]
        return ""


class AssetOutcome(str, enum.Enum):
    SKIPPED_QUANTITY = "skipped_quantity"
    ALREADY_PRESENT = "already_present"
    NO_COVER = "no_cover"
    DUPLICATE = "duplicate"
    DOWNLOADED = "downloaded"
    FAILED = "failed"

    @property
    def counted(self) -> bool:
        return self in (AssetOutcome.ALREADY_PRESENT, AssetOutcome.DOWNLOADED)


@dataclass
class RunSummary:
    policy_id: str
    max_files: int
    outcomes: Counter = field(default_factory=Counter)
    failures: list[tuple[str, str]] = field(default_factory=list)

    def record(self, asset: str, outcome: AssetOutcome, error: str | None = None) -> None:
        self.outcomes[outcome] += 1
        if outcome is AssetOutcome.FAILED:
            self.failures.append((asset, error or "unknown error"))

    @property
    def files_counted(self) -> int:
        return self.outcomes[AssetOutcome.ALREADY_PRESENT] + self.outcomes[AssetOutcome.DOWNLOADED]

    @property
    def budget_exhausted(self) -> bool:
        return self.files_counted >= self.max_files
