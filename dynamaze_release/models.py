"""Result records produced by release steps and pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional


@dataclass(slots=True)
class StepReceipt:
    step: str
    status: str = "ok"
    command: Optional[List[str]] = None
    returncode: Optional[int] = None
    output: List[str] = field(default_factory=list)
    details: Dict[str, object] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "step": self.step,
            "status": self.status,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.command is not None:
            payload["command"] = self.command
            payload["returncode"] = self.returncode
        if self.output:
            payload["output"] = self.output
        if self.details:
            payload["details"] = self.details
        return payload


@dataclass
class PipelineResult:
    pipeline: str
    channel: str
    target: str
    status: str = "ok"
    dry_run: bool = False
    staging_dir: Optional[str] = None
    staged: List[str] = field(default_factory=list)
    receipts: List[StepReceipt] = field(default_factory=list)
    logs: List[str] = field(default_factory=list)

    def record(self, receipt: StepReceipt) -> StepReceipt:
        self.receipts.append(receipt)
        return receipt

    def receipt(self, step: str) -> Optional[StepReceipt]:
        for receipt in self.receipts:
            if receipt.step == step:
                return receipt
        return None

    def to_dict(self) -> Dict[str, object]:
        return {
            "pipeline": self.pipeline,
            "status": self.status,
            "channel": self.channel,
            "target": self.target,
            "dry_run": self.dry_run,
            "staging_dir": self.staging_dir,
            "staged": self.staged,
            "receipts": [receipt.to_dict() for receipt in self.receipts],
            "logs": self.logs,
        }
