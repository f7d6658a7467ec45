"""
Gantt to Excel
Converts Gantt chart task lists into an Excel workbook: one worksheet per sheet,
with a day-by-day timeline grid, a month/year banner row and coloured task bars.

Features:
  - Optional title and subtitle rows per sheet
  - Left/right padding and a minimum number of visible days for edge months
  - Per-task colours with a configurable default
  - thin / thick / double bar borders
  - Input workbook loader, template generator and PNG layout previews
"""

import argparse
import asyncio
import io
import math
import os
import re
import sys
from calendar import monthrange
from datetime import date, datetime, timedelta

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.dates as mdates
from matplotlib.patches import FancyBboxPatch
import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter


# ── Constants ────────────────────────────────────────────────────────────────

_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_INPUT = os.path.join(_DIR, "gantt_data.xlsx")
DEFAULT_OUTPUT = os.path.join(_DIR, "output", "gantt.xlsx")

DEFAULT_AUTHOR = "gantt-excel"
DEFAULT_SHEET_NAME = "Sheet"
MAX_SHEET_NAME_LENGTH = 25
FALLBACK_COLOR = "FF0000"
BORDER_STYLES = ["thin", "thick", "double"]
MAX_EXCEL_COLUMNS = 16384
SHEET_KEYS = ["sheet_name", "title", "sub_title", "data"]
META_KEYS = ["output_file_name", "author", "title", "sub_title"]

DEFAULT_OPTIONS = {
    "left_padding": 0,
    "right_padding": 0,
    "min_days_for_month": 5,
    "default_color": FALLBACK_COLOR,
    "border_style": "thick",
    "language": "en",
}

# Task / Start / End precede the day columns
FIXED_COLUMNS = ["Task", "Start", "End"]
FIXED_COLUMN_WIDTHS = [30, 15, 15]
DAY_COLUMN_WIDTH = 3
TITLE_FONT_SIZE = 16
SUBTITLE_FONT_SIZE = 14

STYLE = {
    "font_family": "DejaVu Sans",
    "title_size": 16,
    "label_size": 9.5,
    "tick_size": 8,
    "small_size": 7.5,
    "bg_color": "#FAFAFA",
    "panel_bg": "#FFFFFF",
    "text_primary": "#1A1A2E",
    "text_secondary": "#555555",
    "text_muted": "#999999",
    "grid_color": "#E0E0E0",
    "month_line_color": "#37474F",
    "row_shade_even": "#F5F5F5",
    "row_shade_odd": "#FFFFFF",
    "bar_height": 0.6,
    "bar_edge_color": "#1A1A2E",
    "border_widths": {"thin": 0.6, "thick": 1.6, "double": 1.2},
    "dpi": 150,
    "fig_min_width": 10,
    "fig_max_width": 40,
}


class GanttInputError(ValueError):
    """No sheets at all, or a sheet without tasks."""

    def __init__(self, message, warnings=None):
        super().__init__(message)
        self.warnings = list(warnings or [])


class GanttDataError(ValueError):
    """Dates that cannot produce a usable timeline window."""


class GanttSerializationError(RuntimeError):
    """The workbook could not be written to a buffer or file."""


# ── Style Helpers ────────────────────────────────────────────────────────────

def apply_style():
    """Configure matplotlib rcParams for preview rendering."""
    plt.rcParams.update({
        "font.family": STYLE["font_family"],
        "font.size": STYLE["label_size"],
        "axes.facecolor": STYLE["panel_bg"],
        "figure.facecolor": STYLE["bg_color"],
        "axes.edgecolor": STYLE["grid_color"],
        "axes.linewidth": 0.8,
        "axes.grid": False,
        "xtick.color": STYLE["text_secondary"],
        "ytick.color": STYLE["text_secondary"],
        "text.color": STYLE["text_primary"],
    })


def add_header_footer(fig, title, subtitle=""):
    """Add a title block and generation timestamp footer."""
    fig.suptitle(title, fontsize=STYLE["title_size"], fontweight="bold",
                 color=STYLE["text_primary"], y=0.98, x=0.04, ha="left")
    if subtitle:
        fig.text(0.04, 0.93, subtitle, fontsize=STYLE["small_size"] + 1,
                 color=STYLE["text_muted"], ha="left")
    fig.text(0.98, 0.01, f"Generated {datetime.now().strftime('%d %b %Y %H:%M')}",
             ha="right", fontsize=STYLE["small_size"], color=STYLE["text_muted"])
    fig.text(0.04, 0.01, "Gantt to Excel preview",
             ha="left", fontsize=STYLE["small_size"], color=STYLE["text_muted"])


def draw_rounded_bar(ax, x, y, width, height, color, edgecolor=None,
                     linewidth=1.2, zorder=3):
    """Draw a horizontal bar with rounded corners using FancyBboxPatch."""
    if width <= 0:
        return None
    rounding = min(0.12, height * 0.3, width * 0.05)
    fancy = FancyBboxPatch(
        (x, y - height / 2), width, height,
        boxstyle=f"round,pad=0,rounding_size={rounding}",
        facecolor=color, edgecolor=edgecolor or color,
        linewidth=linewidth, zorder=zorder,
    )
    ax.add_patch(fancy)
    return fancy


def _draw_weekend_shading(ax, date_min, date_max):
    """Draw light grey vertical bands for weekend days on a date-axis chart."""
    d = date_min
    while d <= date_max:
        if d.weekday() >= 5:
            day_num = mdates.date2num(d)
            ax.axvspan(day_num, day_num + 1, color="#E0E0E0", alpha=0.25, zorder=0)
        d += timedelta(days=1)


# ── Value Helpers ────────────────────────────────────────────────────────────

def norm_date(d):
    """Normalise to midnight datetime so day differences are whole numbers."""
    if not isinstance(d, (datetime, pd.Timestamp)):
        raise TypeError(f"norm_date expected datetime, got {type(d).__name__}: {d!r}")
    if isinstance(d, pd.Timestamp):
        d = d.to_pydatetime()
    return datetime(d.year, d.month, d.day)


def clean_str(val):
    """Return stripped string or empty string for NaN/None."""
    if val is None or (isinstance(val, float) and math.isnan(val)):
        return ""
    return str(val).strip()


def parse_date(val, context=""):
    """Parse a task date: datetime, date, Timestamp, or an ISO-like string."""
    ctx = f" ({context})" if context else ""
    if not isinstance(val, str) and pd.isna(val):
        raise ValueError(f"Date is blank{ctx}")
    if isinstance(val, datetime):
        return norm_date(val)
    if isinstance(val, date):
        return datetime(val.year, val.month, val.day)
    if isinstance(val, str):
        val = val.strip()
        if not val:
            raise ValueError(f"Date is blank{ctx}")
        parsed = pd.to_datetime(val, format="ISO8601", errors="coerce")
        if pd.isna(parsed):
            raise ValueError(f"Cannot parse date{ctx}: {val!r}. Expected YYYY-MM-DD")
        return norm_date(parsed)
    raise ValueError(f"Cannot parse date{ctx}: {val!r}")


_HEX_COLOR_RE = re.compile(r"^(?:[0-9A-F]{6}|[0-9A-F]{8})$")


def normalize_color(val):
    """Return an upper-case RRGGBB / AARRGGBB string, or None if blank or malformed.
    Accepts '#RRGGBB', 'RRGGBB', 'AARRGGBB' and {'argb': ...} mappings."""
    if isinstance(val, dict):
        val = val.get("argb") or val.get("rgb")
    color = clean_str(val).lstrip("#").upper()
    if _HEX_COLOR_RE.match(color):
        return color
    return None


def unknown_key_warnings(record, known_keys, label):
    """Warn about keys the converter ignores, e.g. 'sheetName' for 'sheet_name'."""
    warnings = []
    for key in record:
        if key not in known_keys:
            w = f"{label}: unknown key '{key}' ignored. Valid: {', '.join(known_keys)}"
            print(f"  WARNING: {w}")
            warnings.append(w)
    return warnings


def resolve_options(options=None):
    """Merge caller options over DEFAULT_OPTIONS and validate them.
    None values keep the default; an explicit 0 is honoured."""
    resolved = dict(DEFAULT_OPTIONS)
    for key, value in (options or {}).items():
        if key not in DEFAULT_OPTIONS:
            raise ValueError(f"Unknown option '{key}'. Valid: {', '.join(DEFAULT_OPTIONS)}")
        if value is not None:
            resolved[key] = value

    for key in ("left_padding", "right_padding", "min_days_for_month"):
        value = resolved[key]
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError(f"Option '{key}' must be a non-negative integer, got {value!r}")

    if resolved["border_style"] not in BORDER_STYLES:
        raise ValueError(f"Option 'border_style' must be one of {', '.join(BORDER_STYLES)}, "
                         f"got {resolved['border_style']!r}")

    default_color = normalize_color(resolved["default_color"])
    if default_color is None:
        raise ValueError(f"Option 'default_color' is not a valid hex colour: "
                         f"{resolved['default_color']!r} (e.g. FF0000)")
    resolved["default_color"] = default_color
    resolved["language"] = clean_str(resolved["language"]) or DEFAULT_OPTIONS["language"]
    return resolved


# ── Layout: Tasks & Date Window ──────────────────────────────────────────────

def normalize_tasks(tasks, context=""):
    """Return corrected copies of tasks with dates parsed to midnight and start <= end.
    Tasks with a missing or unparseable date are dropped.
    Returns (tasks, warnings)."""
    prefix = f"{context}: " if context else ""
    normalized = []
    warnings = []
    for idx, task in enumerate(tasks or [], start=1):
        if not isinstance(task, dict):
            warnings.append(f"{prefix}Skipping task {idx}: not a task record ({type(task).__name__})")
            continue
        name = clean_str(task.get("task"))
        label = f"task {idx}" + (f" '{name}'" if name else "")
        try:
            start = parse_date(task.get("start"), context=f"{label}, 'start'")
            end = parse_date(task.get("end"), context=f"{label}, 'end'")
        except ValueError as e:
            warnings.append(f"{prefix}Skipping {label}: {e}")
            continue
        if start > end:
            start, end = end, start
        normalized.append({
            "task": name,
            "start": start,
            "end": end,
            "color": task.get("color"),
        })

    for w in warnings:
        print(f"  WARNING: {w}")
    return normalized, warnings


def resolve_date_window(tasks, options=None):
    """Compute the [min, max] window covering all tasks, after padding and
    edge-month widening. Returns {"min", "max", "no_of_days"}."""
    if not tasks:
        raise GanttInputError("No tasks to lay out.")
    opts = resolve_options(options)

    date_min = tasks[0]["start"]
    date_max = tasks[0]["end"]
    for task in tasks[1:]:
        date_min = min(date_min, task["start"])
        date_max = max(date_max, task["end"])

    date_min -= timedelta(days=opts["left_padding"])
    date_max += timedelta(days=opts["right_padding"])

    # Keep at least min_days_for_month days of each edge month on screen
    min_days = opts["min_days_for_month"]
    _, days_in_month = monthrange(date_min.year, date_min.month)
    days_left_in_month = days_in_month - date_min.day
    if days_left_in_month < min_days:
        date_min -= timedelta(days=min_days - days_left_in_month)
    if date_max.day < min_days:
        date_max += timedelta(days=min_days - date_max.day)

    no_of_days = (date_max - date_min).days + 1
    if no_of_days < 1:
        raise GanttDataError(f"Date window {date_min:%Y-%m-%d} to {date_max:%Y-%m-%d} is empty.")
    if len(FIXED_COLUMNS) + no_of_days > MAX_EXCEL_COLUMNS:
        raise GanttDataError(
            f"Date window {date_min:%Y-%m-%d} to {date_max:%Y-%m-%d} spans {no_of_days} days; "
            f"at most {MAX_EXCEL_COLUMNS - len(FIXED_COLUMNS)} fit on one Excel sheet.")
    return {"min": date_min, "max": date_max, "no_of_days": no_of_days}


def build_day_columns(window):
    """One date per day column, starting at the window minimum."""
    return [window["min"] + timedelta(days=i) for i in range(window["no_of_days"])]


def place_month_banners(days):
    """Return (day_index, 'Mon YYYY') at the first visible day of every month."""
    markers = []
    previous = (None, None)
    for idx, day in enumerate(days):
        if (day.month, day.year) != previous:
            markers.append((idx, day.strftime("%b %Y")))
            previous = (day.month, day.year)
    return markers


# ── Layout: Task Bars ────────────────────────────────────────────────────────

def resolve_task_color(color, default_color=None):
    """Task colour, then the default colour, then FALLBACK_COLOR."""
    for candidate in (color, default_color, FALLBACK_COLOR):
        resolved = normalize_color(candidate)
        if resolved:
            return resolved
    return FALLBACK_COLOR


def place_task_bars(tasks, window, options=None):
    """Map each task onto day-column offsets from the window minimum.
    Returns (bars, warnings); bar columns are 0-based and inclusive."""
    opts = resolve_options(options)
    bars = []
    warnings = []
    for row, task in enumerate(tasks):
        raw_color = task.get("color")
        if raw_color and normalize_color(raw_color) is None:
            warnings.append(f"Task '{task['task']}': colour {raw_color!r} is not a valid hex code, "
                            f"using {opts['default_color']}.")
        bars.append({
            "row": row,
            "task": task["task"],
            "start_col": (task["start"] - window["min"]).days,
            "end_col": (task["end"] - window["min"]).days,
            "color": resolve_task_color(raw_color, opts["default_color"]),
        })

    for w in warnings:
        print(f"  WARNING: {w}")
    return bars, warnings


def bar_border_sides(day_index, start_col, end_col):
    """Border sides for one bar cell. A one-day bar is closed on all four sides."""
    sides = ["top", "bottom"]
    if day_index == start_col:
        sides.append("left")
    if day_index == end_col:
        sides.append("right")
    return tuple(sides)


# ── Layout: Sheets ───────────────────────────────────────────────────────────

_SHEET_NAME_RE = re.compile(r"[^A-Za-z0-9 _]")


def sanitize_sheet_name(name):
    """Keep letters, digits, spaces and underscores; at most 25 characters."""
    cleaned = _SHEET_NAME_RE.sub("", clean_str(name))[:MAX_SHEET_NAME_LENGTH]
    return cleaned or DEFAULT_SHEET_NAME


def unique_sheet_name(name, used_names):
    """Return name, or name_N with the smallest unused N >= 1.

    used_names maps lower-cased sheet names to the last suffix handed out for
    them and is updated in place. Excel compares sheet names case-insensitively.
    """
    key = name.lower()
    if key not in used_names:
        used_names[key] = 0
        return name
    n = used_names[key] + 1
    while f"{name}_{n}".lower() in used_names:
        n += 1
    used_names[key] = n
    candidate = f"{name}_{n}"
    used_names[candidate.lower()] = 0
    return candidate


def layout_sheet(sheet, options=None):
    """Lay out one sheet: normalized tasks, date window, day columns,
    month banners and task bars."""
    opts = resolve_options(options)
    if not isinstance(sheet, dict):
        raise GanttInputError(f"Not a sheet record ({type(sheet).__name__}).")
    label = f"Sheet '{clean_str(sheet.get('sheet_name')) or DEFAULT_SHEET_NAME}'"
    raw_tasks = sheet.get("data") or []
    if not isinstance(raw_tasks, (list, tuple)):
        raise GanttInputError(f"{label}: 'data' must be a list of tasks, "
                              f"got {type(raw_tasks).__name__}.")
    if not raw_tasks:
        raise GanttInputError(f"{label} has no tasks.")

    tasks, warnings = normalize_tasks(raw_tasks, context=label)
    if not tasks:
        raise GanttDataError(f"{label}: none of its {len(raw_tasks)} task(s) have valid dates.")

    window = resolve_date_window(tasks, opts)
    days = build_day_columns(window)
    bars, color_warnings = place_task_bars(tasks, window, opts)

    return {
        "title": clean_str(sheet.get("title")),
        "sub_title": clean_str(sheet.get("sub_title")),
        "window": window,
        "days": days,
        "month_markers": place_month_banners(days),
        "tasks": tasks,
        "bars": bars,
        "total_columns": len(FIXED_COLUMNS) + window["no_of_days"],
        "border_style": opts["border_style"],
        "warnings": warnings + color_warnings,
    }


# ── Workbook Rendering ───────────────────────────────────────────────────────

def write_sheet(wb, plan, sheet_name, options=None):
    """Render a layout plan into a new worksheet of wb. Returns the worksheet."""
    opts = resolve_options(options)
    ws = wb.create_sheet(sheet_name)
    total_columns = plan["total_columns"]
    day_offset = len(FIXED_COLUMNS) + 1

    thin = Side(style="thin")
    thin_border = Border(left=thin, right=thin, top=thin, bottom=thin)
    bar_side = Side(style=opts["border_style"])
    spread = Alignment(horizontal="centerContinuous")

    def spread_row(row):
        for col in range(1, total_columns + 1):
            ws.cell(row=row, column=col).alignment = spread

    # Title / subtitle block, followed by a blank separator row
    row = 1
    for text, size in ((plan["title"], TITLE_FONT_SIZE), (plan["sub_title"], SUBTITLE_FONT_SIZE)):
        if not text:
            continue
        ws.cell(row=row, column=1, value=text).font = Font(bold=True, size=size)
        spread_row(row)
        row += 1
    if row > 1:
        row += 1

    # Month / year banner
    banner_row = row
    spread_row(banner_row)
    for day_index in range(len(plan["days"])):
        ws.cell(row=banner_row, column=day_index + day_offset).border = thin_border
    for day_index, label in plan["month_markers"]:
        ws.cell(row=banner_row, column=day_index + day_offset, value=label)

    # Column headers: Task, Start, End, then day of month
    header_row = banner_row + 1
    headers = FIXED_COLUMNS + [day.day for day in plan["days"]]
    for col, value in enumerate(headers, start=1):
        cell = ws.cell(row=header_row, column=col, value=value)
        cell.alignment = Alignment(horizontal="center")
        cell.border = thin_border

    # Task rows with a thin grid
    first_task_row = header_row + 1
    for offset, task in enumerate(plan["tasks"]):
        task_row = first_task_row + offset
        values = [task["task"], task["start"].strftime("%Y-%m-%d"), task["end"].strftime("%Y-%m-%d")]
        for col, value in enumerate(values, start=1):
            ws.cell(row=task_row, column=col, value=value)
        for col in range(1, total_columns + 1):
            ws.cell(row=task_row, column=col).border = thin_border

    # Bars overwrite the grid borders of the cells they cover
    for bar in plan["bars"]:
        task_row = first_task_row + bar["row"]
        fill = PatternFill(start_color=bar["color"], end_color=bar["color"], fill_type="solid")
        for day_index in range(bar["start_col"], bar["end_col"] + 1):
            sides = bar_border_sides(day_index, bar["start_col"], bar["end_col"])
            cell = ws.cell(row=task_row, column=day_index + day_offset)
            cell.fill = fill
            cell.border = Border(**{side: bar_side for side in sides})

    for col, width in enumerate(FIXED_COLUMN_WIDTHS, start=1):
        ws.column_dimensions[get_column_letter(col)].width = width
    for col in range(day_offset, total_columns + 1):
        ws.column_dimensions[get_column_letter(col)].width = DAY_COLUMN_WIDTH
    ws.freeze_panes = f"{get_column_letter(day_offset)}{first_task_row}"
    return ws


def build_workbook(sheets, meta=None, options=None):
    """Lay out every sheet and render it into a fresh workbook.

    Sheets without tasks, or whose tasks all have invalid dates, are skipped
    with a warning. Returns (workbook, plans, warnings) where plans maps the
    final sheet name to its layout plan.
    """
    if not sheets:
        raise GanttInputError("No data provided.")
    opts = resolve_options(options)
    meta = meta or {}
    warnings = unknown_key_warnings(meta, META_KEYS, "Meta")

    wb = Workbook()
    wb.remove(wb.active)
    author = clean_str(meta.get("author")) or DEFAULT_AUTHOR
    now = datetime.now()
    wb.properties.creator = author
    wb.properties.lastModifiedBy = author
    wb.properties.created = now
    wb.properties.modified = now
    wb.properties.title = clean_str(meta.get("title")) or None
    wb.properties.subject = clean_str(meta.get("sub_title")) or None
    wb.properties.language = opts["language"]

    plans = {}
    used_names = {}
    for sheet in sheets:
        if isinstance(sheet, dict):
            label = f"Sheet '{clean_str(sheet.get('sheet_name')) or DEFAULT_SHEET_NAME}'"
            warnings.extend(unknown_key_warnings(sheet, SHEET_KEYS, label))
        try:
            plan = layout_sheet(sheet, opts)
        except (GanttInputError, GanttDataError) as e:
            message = f"{e} Sheet skipped."
            print(f"  WARNING: {message}")
            warnings.append(message)
            continue
        warnings.extend(plan["warnings"])
        name = unique_sheet_name(sanitize_sheet_name(sheet.get("sheet_name")), used_names)
        write_sheet(wb, plan, name, opts)
        plans[name] = plan

    if not plans:
        raise GanttInputError("No sheet has any task with valid dates.", warnings)
    return wb, plans, warnings


def serialize_workbook(wb, output_path=None):
    """Serialize wb to xlsx bytes, also writing them to output_path if given."""
    try:
        buffer = io.BytesIO()
        wb.save(buffer)
        data = buffer.getvalue()
        if output_path:
            out_dir = os.path.dirname(output_path)
            if out_dir:
                os.makedirs(out_dir, exist_ok=True)
            with open(output_path, "wb") as f:
                f.write(data)
    except Exception as e:
        raise GanttSerializationError(f"Could not write workbook: {e}") from e
    return data


# ── Public Entry Points ──────────────────────────────────────────────────────

def _result(buffer=None, return_code=0, error_message=None, warnings=None, plans=None):
    return {
        "buffer": buffer,
        "return_code": return_code,
        "error_message": error_message,
        "warnings": list(warnings or []),
        "plans": plans or {},
    }


def _failure_result(error):
    if isinstance(error, GanttInputError):
        print(f"  ERROR: {error}")
        return _result(return_code=1, error_message=str(error), warnings=error.warnings)
    print(f"  ERROR: Could not convert to Excel: {error}")
    return _result(return_code=2, error_message=str(error))


def gantt_to_excel(sheets, meta=None, options=None):
    """Convert Gantt sheets to an xlsx document.

    Returns a dict with "buffer" (bytes or None), "return_code" (0 success,
    1 no data, 2 any other failure), "error_message", "warnings" and "plans".
    Never raises.
    """
    try:
        wb, plans, warnings = build_workbook(sheets, meta, options)
        buffer = serialize_workbook(wb, (meta or {}).get("output_file_name"))
    except Exception as e:
        return _failure_result(e)
    return _result(buffer=buffer, warnings=warnings, plans=plans)


async def gantt_to_excel_async(sheets, meta=None, options=None):
    """Same contract as gantt_to_excel. Layout runs inline; the single
    serialization at the end is awaited in a worker thread."""
    try:
        wb, plans, warnings = build_workbook(sheets, meta, options)
        buffer = await asyncio.to_thread(
            serialize_workbook, wb, (meta or {}).get("output_file_name"))
    except Exception as e:
        return _failure_result(e)
    return _result(buffer=buffer, warnings=warnings, plans=plans)


# ── Template Generation ─────────────────────────────────────────────────────

def generate_template(output_path):
    """Create an input workbook with 'Sheets' and 'Tasks' sheets and example data."""
    wb = Workbook()

    header_font = Font(bold=True, color="FFFFFF", size=11)
    header_fill = PatternFill(start_color="2E3B4E", end_color="2E3B4E", fill_type="solid")
    header_alignment = Alignment(horizontal="center", vertical="center")
    thin_border = Border(
        left=Side(style="thin"), right=Side(style="thin"),
        top=Side(style="thin"), bottom=Side(style="thin"),
    )

    def style_header(ws, row=1):
        for cell in ws[row]:
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = header_alignment
            cell.border = thin_border

    def style_data_rows(ws, start_row=2):
        for row in ws.iter_rows(min_row=start_row, max_row=ws.max_row):
            for cell in row:
                cell.border = thin_border
                cell.alignment = Alignment(vertical="center")

    # ── Sheet 1: Sheets ──
    ws_sheets = wb.active
    ws_sheets.title = "Sheets"
    ws_sheets.append(["Sheet", "Title", "Subtitle"])
    ws_sheets.append(["Sample Gantt", "Sample Project", "Phase 1"])
    ws_sheets.append(["Website Relaunch", "Website Relaunch", "Design, build and launch"])
    ws_sheets.column_dimensions["A"].width = 25
    ws_sheets.column_dimensions["B"].width = 30
    ws_sheets.column_dimensions["C"].width = 35
    style_header(ws_sheets)
    style_data_rows(ws_sheets)
    ws_sheets.freeze_panes = "A2"

    # ── Sheet 2: Tasks ──
    ws_tasks = wb.create_sheet("Tasks")
    ws_tasks.append(["Sheet", "Task", "Start", "End", "Color"])
    example_tasks = [
        ["Sample Gantt", "Task 1", "2024-01-01", "2024-01-05", "#FFFF00"],
        ["Sample Gantt", "Task 2", "2024-01-06", "2024-01-10", ""],
        ["Sample Gantt", "Task 3", "2024-01-11", "2024-01-15", "#00B050"],
        ["Website Relaunch", "Discovery workshops", "2026-02-02", "2026-02-13", "#2196F3"],
        ["Website Relaunch", "Visual design", "2026-02-16", "2026-03-06", "#9C27B0"],
        ["Website Relaunch", "Build", "2026-03-02", "2026-04-03", "#4CAF50"],
        ["Website Relaunch", "Content migration", "2026-03-23", "2026-04-10", "#FF9800"],
        ["Website Relaunch", "Go live", "2026-04-13", "2026-04-13", "#F44336"],
    ]
    for task in example_tasks:
        ws_tasks.append(task)
    ws_tasks.column_dimensions["A"].width = 25
    ws_tasks.column_dimensions["B"].width = 35
    ws_tasks.column_dimensions["C"].width = 14
    ws_tasks.column_dimensions["D"].width = 14
    ws_tasks.column_dimensions["E"].width = 12
    style_header(ws_tasks)
    style_data_rows(ws_tasks)
    ws_tasks.freeze_panes = "A2"

    for row_idx in range(2, ws_tasks.max_row + 1):
        ws_tasks.cell(row=row_idx, column=3).alignment = Alignment(horizontal="center", vertical="center")
        ws_tasks.cell(row=row_idx, column=4).alignment = Alignment(horizontal="center", vertical="center")
        # Color preview fills
        color_cell = ws_tasks.cell(row=row_idx, column=5)
        hex_color = normalize_color(color_cell.value)
        if hex_color:
            color_cell.fill = PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")

    out_dir = os.path.dirname(output_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    wb.save(output_path)
    print(f"Template created: {output_path}")
    print("  - Sheet 'Sheets': optional title and subtitle per output sheet")
    print("  - Sheet 'Tasks': one row per task with sheet, start/end (YYYY-MM-DD) and optional colour")
    print(f"\nEdit the file, then run again without --template to generate the workbook.")


# ── Data Loading ─────────────────────────────────────────────────────────────

def load_sheet_details(filepath):
    """Load titles and subtitles from the optional 'Sheets' sheet.
    Returns dict[sheet name -> {"title", "sub_title"}] in sheet order."""
    try:
        df = pd.read_excel(filepath, sheet_name="Sheets")
    except ValueError:
        # Sheet doesn't exist
        return {}
    if df.empty:
        return {}
    df.columns = df.columns.astype(str).str.strip()
    if "Sheet" not in df.columns:
        print("  WARNING: Sheets sheet has no 'Sheet' column, skipping.")
        return {}

    details = {}
    for _, row in df.iterrows():
        name = clean_str(row["Sheet"])
        if not name:
            continue
        details[name] = {
            "title": clean_str(row.get("Title", "")),
            "sub_title": clean_str(row.get("Subtitle", "")),
        }
    return details


def load_sheets(filepath):
    """Load Gantt sheets from an input workbook.

    Tasks come from the 'Tasks' sheet (Sheet, Task, Start, End, optional Color);
    titles from the optional 'Sheets' sheet. Dates are passed through as read
    and parsed later, so bad dates surface as per-task warnings.
    """
    try:
        df = pd.read_excel(filepath, sheet_name="Tasks")
    except Exception as e:
        print(f"  WARNING: Could not read Tasks sheet: {e}")
        return []
    df.columns = df.columns.astype(str).str.strip()
    required = {"Sheet", "Task", "Start", "End"}
    missing = required - set(df.columns)
    if missing:
        print(f"  ERROR: Tasks sheet is missing column(s): {', '.join(sorted(missing))}. "
              f"Found: {', '.join(df.columns)}")
        return []

    sheets = {}
    for name, info in load_sheet_details(filepath).items():
        sheets[name] = {"sheet_name": name, "title": info["title"],
                        "sub_title": info["sub_title"], "data": []}

    for _, row in df.iterrows():
        task_name = clean_str(row["Task"])
        if not task_name:
            continue  # skip blank rows
        sheet_name = clean_str(row["Sheet"]) or DEFAULT_SHEET_NAME
        if sheet_name not in sheets:
            sheets[sheet_name] = {"sheet_name": sheet_name, "title": "",
                                  "sub_title": "", "data": []}
        sheets[sheet_name]["data"].append({
            "task": task_name,
            "start": row["Start"],
            "end": row["End"],
            "color": clean_str(row.get("Color", "")) or None,
        })
    return list(sheets.values())


# ── Preview ──────────────────────────────────────────────────────────────────

def render_preview(plan, output_path, sheet_name=""):
    """Render a PNG preview of one sheet's layout plan."""
    apply_style()
    days = plan["days"]
    bars = plan["bars"]
    total_rows = len(plan["tasks"])

    fig_width = min(STYLE["fig_max_width"], max(STYLE["fig_min_width"], len(days) * 0.2 + 4))
    fig_height = max(4, total_rows * 0.5 + 2.5)
    fig = plt.figure(figsize=(fig_width, fig_height), facecolor=STYLE["bg_color"])
    ax = fig.add_axes([0.18, 0.14, 0.78, 0.70])

    date_min = days[0]
    date_max = days[-1] + timedelta(days=1)

    for i in range(total_rows):
        shade = STYLE["row_shade_even"] if i % 2 == 0 else STYLE["row_shade_odd"]
        ax.axhspan(i - 0.5, i + 0.5, color=shade, alpha=0.6, zorder=0)
    _draw_weekend_shading(ax, days[0], days[-1])

    linewidth = STYLE["border_widths"].get(plan.get("border_style"), 1.2)
    for bar in bars:
        y_pos = total_rows - 1 - bar["row"]
        start_num = mdates.date2num(days[bar["start_col"]])
        width = bar["end_col"] - bar["start_col"] + 1
        draw_rounded_bar(ax, start_num, y_pos, width, STYLE["bar_height"],
                         f"#{bar['color'][-6:]}", edgecolor=STYLE["bar_edge_color"],
                         linewidth=linewidth)

    # Month boundaries and labels
    for day_index, label in plan["month_markers"]:
        x = mdates.date2num(days[day_index])
        if day_index > 0:
            ax.axvline(x, color=STYLE["month_line_color"], linewidth=0.8, alpha=0.5, zorder=1)
        ax.text(x + 0.2, total_rows - 0.45, label, fontsize=STYLE["small_size"],
                fontweight="bold", color=STYLE["month_line_color"], va="bottom", ha="left")

    ax.set_yticks(list(range(total_rows)))
    ax.set_yticklabels([t["task"] for t in reversed(plan["tasks"])], fontsize=STYLE["tick_size"])
    ax.set_ylim(-0.5, total_rows + 0.2)
    ax.set_xlim(mdates.date2num(date_min), mdates.date2num(date_max))
    ax.xaxis.set_major_locator(mdates.DayLocator(interval=max(1, len(days) // 30)))
    ax.xaxis.set_major_formatter(mdates.DateFormatter("%d"))
    plt.setp(ax.xaxis.get_majorticklabels(), fontsize=STYLE["tick_size"])
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)

    window = plan["window"]
    date_range = f"{window['min'].strftime('%d %b %Y')} to {window['max'].strftime('%d %b %Y')}"
    title = plan["title"] or sheet_name or "Gantt Chart"
    add_header_footer(fig, title, plan["sub_title"] or date_range)

    out_dir = os.path.dirname(output_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    fig.savefig(output_path, dpi=STYLE["dpi"], bbox_inches="tight", facecolor=STYLE["bg_color"])
    plt.close(fig)
    print(f"  Preview saved: {output_path}")


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Gantt to Excel: convert Gantt task lists into an Excel timeline workbook"
    )
    parser.add_argument(
        "--template", action="store_true",
        help="Generate an input workbook with example data at --input"
    )
    parser.add_argument(
        "--input", default=DEFAULT_INPUT,
        help="Path to the input workbook (default: gantt_data.xlsx)"
    )
    parser.add_argument(
        "--output", default=DEFAULT_OUTPUT,
        help="Path of the Excel file to write (default: output/gantt.xlsx)"
    )
    parser.add_argument(
        "--preview", default=None, metavar="DIR",
        help="Also write a PNG preview per sheet into this directory"
    )
    parser.add_argument("--left-padding", type=int, default=None,
                        help="Days added before the earliest task (default: 0)")
    parser.add_argument("--right-padding", type=int, default=None,
                        help="Days added after the latest task (default: 0)")
    parser.add_argument("--min-days-for-month", type=int, default=None,
                        help="Minimum visible days of the first and last month (default: 5)")
    parser.add_argument("--default-color", default=None,
                        help="Bar colour for tasks without one, as hex (default: FF0000)")
    parser.add_argument("--border-style", default=None, choices=BORDER_STYLES,
                        help="Bar border style (default: thick)")
    parser.add_argument("--language", default=None,
                        help="Document language property (default: en)")
    parser.add_argument("--author", default=None, help="Document author")
    parser.add_argument("--title", default=None, help="Document title property")
    parser.add_argument("--subtitle", default=None, help="Document subject property")
    args = parser.parse_args(argv)

    if args.template:
        generate_template(args.input)
        return 0

    if not os.path.exists(args.input):
        print(f"Error: Input file not found: {args.input}")
        print("Run with --template first to create a template.")
        return 1

    print(f"Loading data from: {args.input}")
    sheets = load_sheets(args.input)
    print(f"  Sheets: {len(sheets)}")
    print(f"  Tasks: {sum(len(s['data']) for s in sheets)}")

    options = {
        "left_padding": args.left_padding,
        "right_padding": args.right_padding,
        "min_days_for_month": args.min_days_for_month,
        "default_color": args.default_color,
        "border_style": args.border_style,
        "language": args.language,
    }
    meta = {
        "output_file_name": args.output,
        "author": args.author,
        "title": args.title,
        "sub_title": args.subtitle,
    }
    result = gantt_to_excel(sheets, meta, options)
    if result["return_code"] != 0:
        return result["return_code"]

    output_files = [args.output]
    if args.preview:
        for name, plan in result["plans"].items():
            preview_path = os.path.join(args.preview, f"{name}.png")
            render_preview(plan, preview_path, sheet_name=name)
            output_files.append(preview_path)

    print(f"  Sheets written: {', '.join(result['plans'])}")
    if result["warnings"]:
        print(f"  Warnings: {len(result['warnings'])}")
    print()
    print("  Output:")
    for f in output_files:
        print(f"    {os.path.abspath(f)}")
    print("\nDone.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
