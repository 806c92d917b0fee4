"""Schema describing important fields for CLI table rendering."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

Row = Mapping[str, Any]
ValueExtractor = Callable[[Row], Any]
ValueFormatter = Callable[[Any], str]
SortKey = Callable[[Row], Any]

SECTOR_SIZE = 512


@dataclass(frozen=True)
class Column:
    """Describe how to pull and format a column for Rich tables."""

    header: str
    keys: tuple[str, ...] = ()
    extractor: ValueExtractor | None = None
    formatter: ValueFormatter | None = None
    justify: str = "left"

    def render(self, row: Row) -> str:
        value: Any | None = None
        if self.keys:
            for key in self.keys:
                if key in row:
                    value = row.get(key)
                    if value is not None:
                        break
        if value is None and self.extractor:
            value = self.extractor(row)
        if value is None:
            return ""
        if self.formatter:
            formatted = self.formatter(value)
            return "" if formatted is None else str(formatted)
        return str(value)


@dataclass(frozen=True)
class TableView:
    """Describe a Rich table for a CLI command."""

    title: str
    columns: tuple[Column, ...]
    sort_key: SortKey | None = None


def _coerce_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _sectors_formatter(*, precision: int = 2) -> ValueFormatter:
    # Capacities are reported in 512-byte sectors.
    def _formatter(value: Any) -> str:
        number = _coerce_number(value)
        if number is None:
            return ""
        gib_value = number * SECTOR_SIZE / (1024**3)
        return f"{gib_value:.{precision}f}"

    return _formatter


_HEALTH_STATUS = {
    "0": "Unknown",
    "1": "Normal",
    "2": "Fault",
    "3": "Pre-fail",
    "4": "Partially broken",
    "5": "Degraded",
    "6": "Bad sectors found",
    "7": "Bit errors found",
    "8": "Consistent",
    "9": "Inconsistent",
    "10": "Busy",
    "11": "No input",
    "12": "Low battery",
    "13": "Single link fault",
    "14": "Invalid",
    "15": "Write protect",
}

_RUNNING_STATUS = {
    "0": "Unknown",
    "1": "Normal",
    "2": "Running",
    "3": "Not running",
    "5": "Sleep in high temperature",
    "8": "Spin down",
    "10": "Link up",
    "11": "Link down",
    "12": "Powering on",
    "14": "Pre-copy",
    "16": "Reconstruction",
    "27": "Online",
    "28": "Offline",
    "32": "Balancing",
    "53": "Initializing",
}


def _status_formatter(table: Mapping[str, str]) -> ValueFormatter:
    def _formatter(value: Any) -> str:
        key = str(value).strip()
        return table.get(key, key)

    return _formatter


def _percent_formatter(value: Any) -> str:
    number = _coerce_number(value)
    if number is None:
        return ""
    return f"{number:.0f}%"


def _sort_name(row: Row) -> str:
    return str(row.get("NAME") or "").lower()


def _sort_id(row: Row) -> Any:
    number = _coerce_number(row.get("ID"))
    return (0, number) if number is not None else (1, str(row.get("ID") or ""))


CLI_TABLE_VIEWS: dict[str, TableView] = {
    "system.pools": TableView(
        title="Storage Pools",
        columns=(
            Column("Name", keys=("NAME",)),
            Column("ID", keys=("ID",), justify="right"),
            Column(
                "Capacity (GiB)",
                keys=("USERTOTALCAPACITY",),
                formatter=_sectors_formatter(precision=1),
                justify="right",
            ),
            Column(
                "Free (GiB)",
                keys=("USERFREECAPACITY",),
                formatter=_sectors_formatter(precision=1),
                justify="right",
            ),
            Column("Health", keys=("HEALTHSTATUS",), formatter=_status_formatter(_HEALTH_STATUS)),
            Column("Running", keys=("RUNNINGSTATUS",), formatter=_status_formatter(_RUNNING_STATUS)),
        ),
        sort_key=_sort_name,
    ),
    "system.controllers": TableView(
        title="Controllers",
        columns=(
            Column("Name", keys=("NAME",)),
            Column("ID", keys=("ID",)),
            Column("CPU", keys=("CPUUSAGE",), formatter=_percent_formatter, justify="right"),
            Column("Memory", keys=("MEMORYUSAGE",), formatter=_percent_formatter, justify="right"),
            Column("Health", keys=("HEALTHSTATUS",), formatter=_status_formatter(_HEALTH_STATUS)),
            Column("Running", keys=("RUNNINGSTATUS",), formatter=_status_formatter(_RUNNING_STATUS)),
        ),
        sort_key=_sort_name,
    ),
    "filesystems.list": TableView(
        title="Filesystems",
        columns=(
            Column("Name", keys=("NAME",)),
            Column("ID", keys=("ID",), justify="right"),
            Column("Pool", keys=("PARENTNAME", "PARENTID")),
            Column(
                "Cap (GiB)",
                keys=("CAPACITY",),
                formatter=_sectors_formatter(precision=2),
                justify="right",
            ),
            Column("vStore", keys=("vstoreName", "vstoreId")),
            Column("Health", keys=("HEALTHSTATUS",), formatter=_status_formatter(_HEALTH_STATUS)),
        ),
        sort_key=_sort_id,
    ),
    "luns.list": TableView(
        title="LUNs",
        columns=(
            Column("Name", keys=("NAME",)),
            Column("ID", keys=("ID",), justify="right"),
            Column("WWN", keys=("WWN",)),
            Column("Pool", keys=("PARENTNAME", "PARENTID")),
            Column(
                "Cap (GiB)",
                keys=("CAPACITY",),
                formatter=_sectors_formatter(precision=2),
                justify="right",
            ),
            Column("Health", keys=("HEALTHSTATUS",), formatter=_status_formatter(_HEALTH_STATUS)),
        ),
        sort_key=_sort_id,
    ),
}
