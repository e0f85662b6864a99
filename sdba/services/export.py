import csv
import io
import json
import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type
from uuid import UUID

from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from sdba import config
from sdba.errors import bad_request, not_found
from sdba.models import RaceCategory, ScTeamMeta, TeamBase, TeamMeta, WuTeamMeta
from sdba.models.timestamps import utc_now
from sdba.sanitize import sanitize_file_name
from sdba.schemas import ExportMode, ExportRequest

logger = logging.getLogger(__name__)

EXPORT_SOURCES: Dict[ExportMode, Type[TeamBase]] = {
    ExportMode.TN: TeamMeta,
    ExportMode.WU: WuTeamMeta,
    ExportMode.SC: ScTeamMeta,
}

UTF8_BOM = "\ufeff"
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def _get_model_field_order(model: Type[SQLModel]) -> List[str]:
    """Return the model fields in the order they are defined."""
    return list(model.model_fields.keys())


def _export_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return value


def serialize_rows_for_export(rows: Sequence[SQLModel]) -> List[Dict[str, Any]]:
    if not rows:
        return []

    ordered_fields = _get_model_field_order(rows[0].__class__)
    return [
        {field_name: _export_value(getattr(record, field_name)) for field_name in ordered_fields}
        for record in rows
    ]


def render_csv(rows: List[Dict[str, Any]]) -> str:
    """Render rows as RFC 4180 CSV, prefixed with a BOM for spreadsheet apps."""
    buffer = io.StringIO()
    buffer.write(UTF8_BOM)
    if rows:
        writer = csv.DictWriter(buffer, fieldnames=list(rows[0].keys()), lineterminator="\r\n")
        writer.writeheader()
        writer.writerows(rows)
    return buffer.getvalue()


def export_filename(mode_label: str, now: Optional[datetime] = None) -> str:
    timestamp = (now or utc_now()).isoformat()[:16].replace(":", "-")
    return sanitize_file_name(f"SDBA_{mode_label}_{timestamp}.csv")


def resolve_export_source(request: ExportRequest) -> Tuple[Type[TeamBase], str]:
    if request.mode == ExportMode.ALL:
        raise bad_request("Export mode 'all' is not supported; export tn, wu and sc separately")

    model = EXPORT_SOURCES[request.mode]
    label = request.mode.value
    if request.mode == ExportMode.TN and request.category is not None:
        label = f"{label}_{request.category.value}"
    return model, label


async def fetch_export_rows(
    session: AsyncSession,
    model: Type[TeamBase],
    season: Optional[int] = None,
    category: Optional[RaceCategory] = None,
    page_size: Optional[int] = None,
) -> List[TeamBase]:
    if page_size is None:
        page_size = config.EXPORT_PAGE_SIZE
    if page_size < 1:
        raise ValueError(f"page_size must be at least 1, got {page_size}")

    statement = select(model)
    if season is not None:
        statement = statement.where(model.season == season)
    if category is not None and model is TeamMeta:
        statement = statement.where(TeamMeta.category == category.value)
    statement = statement.order_by(model.created_at.desc(), model.id.desc())

    rows: List[TeamBase] = []
    offset = 0
    while True:
        result = await session.exec(statement.offset(offset).limit(page_size))
        chunk = result.all()
        rows.extend(chunk)
        if len(chunk) < page_size:
            break
        offset += page_size
    return rows


async def build_export(session: AsyncSession, request: ExportRequest) -> Tuple[str, str]:
    """Return ``(filename, csv_text)`` for an export request."""
    model, label = resolve_export_source(request)
    rows = await fetch_export_rows(session, model, season=request.season, category=request.category)
    if not rows:
        raise not_found("No data found")

    content = render_csv(serialize_rows_for_export(rows))
    logger.info("Exported %d %s row(s)", len(rows), label)
    return export_filename(label), content


