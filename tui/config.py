"""
GridCalc — settings from the ``[TUI]`` table of the configuration file.

Missing keys fall back to ``DEFAULT_SETTINGS``; present keys are validated.
"""

import string
from typing import Literal

from pydantic import BaseModel, Field, model_validator

CONFIG_NAME = ".func.toml"
DEFAULT_SECTION = "0"
RESERVED_KEYS = {"const", "remarks", "tui"}

# ── Default settings (merged under whatever the file provides) ───────────
DEFAULT_SETTINGS = {
    "color": "Green",
    "attribute": "Underlined",
    "step": 3,              # decimal places shown in results
    "rows": 14,             # 14 (A-N) or 20 (A-T)
    "aggregate_rows": 11,   # rows summed into Z (A-K)
    "reserved_tail": 1,     # trailing rows an import leaves alone
    "input_width": 57,
    "output_width": 23,
}


class Settings(BaseModel):
    color: str = DEFAULT_SETTINGS["color"]
    attribute: str = DEFAULT_SETTINGS["attribute"]
    step: int = Field(default=DEFAULT_SETTINGS["step"], ge=0, le=10)
    rows: Literal[14, 20] = DEFAULT_SETTINGS["rows"]
    aggregate_rows: int = Field(default=DEFAULT_SETTINGS["aggregate_rows"], ge=0)
    reserved_tail: int = Field(default=DEFAULT_SETTINGS["reserved_tail"], ge=0)
    input_width: int = Field(default=DEFAULT_SETTINGS["input_width"], ge=8)
    output_width: int = Field(default=DEFAULT_SETTINGS["output_width"], ge=8)

    @model_validator(mode="after")
    def _ranges_fit_grid(self) -> "Settings":
        if self.aggregate_rows > self.rows:
            raise ValueError("aggregate_rows cannot exceed rows")
        if self.reserved_tail >= self.rows:
            raise ValueError("reserved_tail must leave at least one editable row")
        return self

    @property
    def labels(self) -> list[str]:
        return list(string.ascii_uppercase[:self.rows])

    @property
    def editable_rows(self) -> int:
        """Rows cleared and refilled when a section is loaded."""
        return self.rows - self.reserved_tail

    @property
    def z_notice(self) -> str:
        """Text put in a cell of the aggregate range when ``z`` is typed."""
        labels = self.labels
        tail = labels[self.aggregate_rows:]
        area = f"{tail[0]}-{tail[-1]}" if tail else "no"
        return f"# Global variable Z is limited to the {area} area only"


def settings_from_table(table: dict) -> Settings:
    """Merge a raw ``[TUI]`` table over the defaults and validate it."""
    merged = dict(DEFAULT_SETTINGS)
    merged.update({k.lower(): v for k, v in table.items()})
    return Settings.model_validate(merged)


def default_document(rows: int = DEFAULT_SETTINGS["rows"]) -> dict:
    """The content written when no configuration file exists yet."""
    return {
        DEFAULT_SECTION: {label: "" for label in string.ascii_uppercase[:rows]},
        "remarks": {"R0": ""},
        "const": {"k": "1000.0 # Thousand"},
        "TUI": {
            "color": DEFAULT_SETTINGS["color"],
            "attribute": DEFAULT_SETTINGS["attribute"],
        },
    }
