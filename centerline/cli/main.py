#!/usr/bin/env python3
from typing import Optional, List

import matplotlib
matplotlib.use("Agg")

import argparse
from urllib.parse import urlsplit
import os
import sys
import logging

from pydantic import ValidationError

from centerline.core.config import load_config, get_setting
from centerline.core.catalog import issues_from_validation_error, suggested_point_id
from centerline.core.exceptions import (
    DuplicatePointError,
    LayoutModuleNotFoundError,
    PointNotFoundError,
    PointValidationError,
    ValidationIssue,
)
from centerline.core.export import checklist_frame, write_checklist_csv
from centerline.core.forms import GEOMETRY_FIELDS, ModuleDraft, PointDraft
from centerline.core.models import MODULE_PALETTE, Criticality, MachineModule, PointStatus, Zone
from centerline.core.projection.map_projector import MapProjector, RenderMode
from centerline.core.projection.phase_projector import PhaseProjector
from centerline.core.qr import resolve_deep_link
from centerline.core.session import Session
from centerline.core.sop import generate_sop
from centerline.core.utils.log_setup import setup_logging_from_config
from centerline.core.visualization.renderer import SUPPORTED_FORMATS, render_dial, render_map

LIST_COLUMNS = ['number', 'id', 'name', 'zone', 'criticality', 'status', 'target_value', 'tolerance']

# --- Helpers ---

def _open_session() -> Session:
    return Session.from_config()

def _resolve_point(session: Session, ref: str):
    # A scanned deep link ('http://host/?p=LSK-B1') resolves like its payload.
    if '?' in ref:
        point = resolve_deep_link(urlsplit(ref).query, session.points.points)
    else:
        point = session.points.find(ref)
    if point is None:
        logging.getLogger(__name__).error(f"No point with id or number '{ref}'.")
        sys.exit(1)
    return point

def _image_format(path: str) -> str:
    ext = os.path.splitext(path)[1].lstrip('.').lower() or 'png'
    if ext not in SUPPORTED_FORMATS:
        logging.getLogger(__name__).error(
            f"Unsupported output extension '.{ext}'. Use one of: {', '.join(SUPPORTED_FORMATS)}")
        sys.exit(1)
    return ext

def _write_bytes(path: str, data: bytes) -> None:
    out_dir = os.path.dirname(os.path.abspath(path))
    os.makedirs(out_dir, exist_ok=True)
    with open(path, 'wb') as f:
        f.write(data)

def _report_issues(issues: List[ValidationIssue], what: str) -> None:
    logger = logging.getLogger(__name__)
    logger.error(f"{what} rejected:")
    for issue in issues:
        logger.error(f"  {issue.field}: {issue.message}")
    sys.exit(1)

def _apply_point_fields(draft: PointDraft, args: argparse.Namespace) -> PointDraft:
    """Copies the point options given on the command line onto the draft."""
    for attr, value in (
        ('name', args.name), ('zone', args.zone), ('description', args.description),
        ('target_value', args.target), ('tolerance', args.tolerance),
        ('measure_method', args.measure), ('criticality', args.criticality),
        ('phase_angle_text', args.phase_angle),
    ):
        if value is not None:
            setattr(draft, attr, value)
    if args.x is not None or args.y is not None:
        draft.place(draft.x if args.x is None else args.x, draft.y if args.y is None else args.y)
    if args.hidden is not None:
        draft.visible_on_map = not args.hidden
    return draft

def _module_changes(args: argparse.Namespace) -> dict:
    changes = {}
    for attr in ('label',) + GEOMETRY_FIELDS + ('color', 'fill'):
        value = getattr(args, attr, None)
        if value is not None:
            changes['has_fill' if attr == 'fill' else attr] = value
    return changes

# --- CLI Command Functions ---

def cli_serve(args: argparse.Namespace):
    """Handler for the 'serve' command."""
    import uvicorn
    logger = logging.getLogger(__name__)
    host = args.host or get_setting('app.host', '0.0.0.0')
    port = args.port or int(get_setting('app.port', 3000))
    logger.info(f"=== Starting API server on {host}:{port} ===")
    uvicorn.run("centerline.api.main:app", host=host, port=port, log_level="info")


def cli_list(args: argparse.Namespace):
    """Handler for the 'list' command."""
    session = _open_session()
    df = checklist_frame(session.points.points, args.text or '', args.zone, args.status)
    if df.empty:
        print("No points match.")
        return
    print(df[LIST_COLUMNS].to_string(index=False))


def cli_show(args: argparse.Namespace):
    """Handler for the 'show' command."""
    session = _open_session()
    point = _resolve_point(session, args.ref)
    fields = [
        ("Id", point.id), ("Number", point.number), ("Name", point.name), ("Zone", point.zone.value),
        ("Criticality", point.criticality.value + (" (stops the line)" if point.criticality.stops_the_line else "")),
        ("Status", point.status.value),
        ("Last checked", point.last_checked.isoformat() if point.last_checked else "-"),
        ("Target value", point.target_value), ("Tolerance", point.tolerance),
        ("Measure method", point.measure_method),
        ("Map position", f"{point.coordinates.x:g}%, {point.coordinates.y:g}%" if point.coordinates else "-"),
        ("On map", "yes" if point.visible_on_map else "no"),
        ("Phase angle", f"{point.phase_angle:g}°" if point.on_dial else "-"),
        ("Description", point.description),
    ]
    width = max(len(label) for label, _ in fields)
    for label, value in fields:
        print(f"{label:<{width}} : {value}")


def cli_status(args: argparse.Namespace):
    """Handler for the 'status' command."""
    logger = logging.getLogger(__name__)
    session = _open_session()
    point = _resolve_point(session, args.ref)
    try:
        updated = session.points.set_status(point.id, PointStatus(args.status))
    except PointNotFoundError as e:
        logger.error(str(e))
        sys.exit(1)
    print(f"{updated.id}: {updated.status.value} (checked {updated.last_checked.isoformat()})")


def cli_qr(args: argparse.Namespace):
    """Handler for the 'qr' command."""
    session = _open_session()
    point = _resolve_point(session, args.ref)
    builder = session.qr_builder(args.origin)
    size = args.size or int(get_setting('services.qr.default_size', 200))
    if builder.needs_public_url_setup:
        print("Warning: links from a local host will not open on other devices. "
              "Set a public base URL (e.g. the machine's LAN address).", file=sys.stderr)
    print(f"Deep link : {builder.deep_link(point.id)}")
    print(f"QR image  : {builder.qr_image_url(point.id, size)}")


def cli_render_map(args: argparse.Namespace):
    """Handler for the 'render-map' command."""
    logger = logging.getLogger(__name__)
    fmt = _image_format(args.output)
    session = _open_session()
    projector = MapProjector(args.width, args.height, custom_map_url=session.settings.custom_map_url)
    scene = projector.project(session.points.points, selected_id=args.selected, mode=RenderMode(args.mode))
    image_bytes = render_map(scene, fmt, title=args.title)
    if image_bytes is None:
        logger.error("Map rendering failed.")
        sys.exit(1)
    _write_bytes(args.output, image_bytes)
    logger.info(f"Map written to {args.output}")


def cli_render_dial(args: argparse.Namespace):
    """Handler for the 'render-dial' command."""
    logger = logging.getLogger(__name__)
    fmt = _image_format(args.output)
    session = _open_session()
    scene = PhaseProjector.from_config().project(session.points.points, args.angle)
    for marker in scene.near_markers:
        print(f"NEAR {scene.simulated_angle:g}°: #{marker.number} {marker.name} at {marker.phase_angle:g}°")
    image_bytes = render_dial(scene, RenderMode(args.mode), fmt)
    if image_bytes is None:
        logger.error("Dial rendering failed.")
        sys.exit(1)
    _write_bytes(args.output, image_bytes)
    logger.info(f"Dial written to {args.output}")


def cli_export(args: argparse.Namespace):
    """Handler for the 'export' command."""
    session = _open_session()
    builder = session.qr_builder(args.origin) if args.with_links else None
    df = checklist_frame(session.points.points, args.text or '', args.zone, args.status, qr_builder=builder)
    write_checklist_csv(df, args.output)
    print(f"Wrote {len(df)} rows to {args.output}")


def cli_sop(args: argparse.Namespace):
    """Handler for the 'sop' command."""
    session = _open_session()
    point = _resolve_point(session, args.ref)
    print(generate_sop(point))


def cli_reset(args: argparse.Namespace):
    """Handler for the 'reset' command."""
    logger = logging.getLogger(__name__)
    if not args.yes:
        logger.error("Refusing to reset without --yes; this replaces every stored point.")
        sys.exit(1)
    session = _open_session()
    session.points.reset_to_defaults()
    print(f"Point catalog reset to {len(session.points)} built-in points.")


def cli_add(args: argparse.Namespace):
    """Handler for the 'add' command."""
    logger = logging.getLogger(__name__)
    session = _open_session()
    draft = PointDraft.new(session.points.points)
    if args.number is not None:
        draft.number = args.number
        draft.id = suggested_point_id(args.number)
    if args.id:
        draft.id = args.id
    _apply_point_fields(draft, args)
    try:
        point = draft.build()
    except PointValidationError as e:
        _report_issues(e.issues, f"Point '{draft.id}'")
    try:
        session.points.add_point(point)
    except DuplicatePointError as e:
        logger.error(str(e))
        sys.exit(1)
    print(f"Added {point.id} (#{point.number}).")


def cli_edit(args: argparse.Namespace):
    """Handler for the 'edit' command."""
    logger = logging.getLogger(__name__)
    session = _open_session()
    draft = _apply_point_fields(PointDraft.from_point(_resolve_point(session, args.ref)), args)
    try:
        point = draft.build()
    except PointValidationError as e:
        _report_issues(e.issues, f"Point '{draft.id}'")
    try:
        session.points.replace_point(point)
    except PointNotFoundError as e:
        logger.error(str(e))
        sys.exit(1)
    print(f"Updated {point.id}.")


def cli_layout_list(args: argparse.Namespace):
    """Handler for the 'layout list' command."""
    session = _open_session()
    if not len(session.layout):
        print("Layout is empty.")
        return
    for m in session.layout.modules:
        print(f"{m.id:<16} {m.label:<20} x={m.x:g} y={m.y:g} w={m.width:g} h={m.height:g} {m.color}")


def cli_layout_add(args: argparse.Namespace):
    """Handler for the 'layout add' command."""
    logger = logging.getLogger(__name__)
    session = _open_session()
    if any(m.id == args.module_id for m in session.layout.modules):
        logger.error(f"Module '{args.module_id}' already exists.")
        sys.exit(1)
    fields = {'id': args.module_id, 'color': MODULE_PALETTE[len(session.layout) % len(MODULE_PALETTE)]}
    fields.update(_module_changes(args))
    try:
        module = MachineModule.model_validate(fields)
    except ValidationError as e:
        _report_issues(issues_from_validation_error(e), f"Module '{args.module_id}'")
    session.layout.add_module(module)
    print(f"Added module {module.id}.")


def cli_layout_update(args: argparse.Namespace):
    """Handler for the 'layout update' command."""
    logger = logging.getLogger(__name__)
    session = _open_session()
    try:
        draft = ModuleDraft(session.layout.get(args.module_id))
    except LayoutModuleNotFoundError as e:
        logger.error(str(e))
        sys.exit(1)
    try:
        module = draft.update(**_module_changes(args))
    except ValidationError as e:
        _report_issues(issues_from_validation_error(e), f"Module '{args.module_id}'")
    session.layout.update_module(module)
    print(f"Updated module {module.id}.")


def cli_layout_nudge(args: argparse.Namespace):
    """Handler for the 'layout nudge' command."""
    logger = logging.getLogger(__name__)
    session = _open_session()
    try:
        module = ModuleDraft(session.layout.get(args.module_id)).adjust(args.field, args.delta)
    except LayoutModuleNotFoundError as e:
        logger.error(str(e))
        sys.exit(1)
    session.layout.update_module(module)
    print(f"{module.id}: {args.field}={getattr(module, args.field):g}")


def cli_layout_delete(args: argparse.Namespace):
    """Handler for the 'layout delete' command."""
    logger = logging.getLogger(__name__)
    session = _open_session()
    if not session.layout.delete_module(args.module_id):
        logger.error(f"Module '{args.module_id}' not found.")
        sys.exit(1)
    print(f"Deleted module {args.module_id}.")


def _add_point_field_arguments(parser: argparse.ArgumentParser, zones: List[str], criticalities: List[str]) -> None:
    parser.add_argument("--name")
    parser.add_argument("--zone", type=Zone, choices=list(Zone), metavar="{" + ",".join(zones) + "}")
    parser.add_argument("--description")
    parser.add_argument("--target", help="Target value, free text (e.g. '12.5 mm').")
    parser.add_argument("--tolerance", help="Tolerance, free text (e.g. '+/- 0.5 mm').")
    parser.add_argument("--measure", help="Measure method.")
    parser.add_argument("--criticality", type=Criticality, choices=list(Criticality),
                        metavar="{" + ",".join(criticalities) + "}")
    parser.add_argument("--x", type=float, help="Map position, %% of width.")
    parser.add_argument("--y", type=float, help="Map position, %% of height.")
    parser.add_argument("--phase-angle", help="Angle in the machine cycle, 0-360 (empty clears it).")
    visibility = parser.add_mutually_exclusive_group()
    visibility.add_argument("--hidden", dest="hidden", action='store_const', const=True, help="Keep off the map.")
    visibility.add_argument("--visible", dest="hidden", action='store_const', const=False, help="Show on the map.")


def _add_module_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--label")
    for attr in GEOMETRY_FIELDS:
        parser.add_argument(f"--{attr}", type=float, help=f"{attr.capitalize()}, %% of canvas.")
    parser.add_argument("--color", help="Stroke color, e.g. '#3b82f6'.")
    fill = parser.add_mutually_exclusive_group()
    fill.add_argument("--fill", dest="fill", action='store_const', const=True, help="Fill the rectangle.")
    fill.add_argument("--no-fill", dest="fill", action='store_const', const=False, help="Outline only.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Centerline machine-calibration catalog CLI.",
                                     formatter_class=argparse.RawTextHelpFormatter)
    subparsers = parser.add_subparsers(title="Available Commands", dest="subcommand", required=True,
                                       help="Use '<command> --help' for details.")

    zones = [z.value for z in Zone]
    statuses = [s.value for s in PointStatus]
    modes = [m.value for m in RenderMode]
    criticalities = [c.value for c in Criticality]

    # --- 'serve' command ---
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API.")
    serve_parser.add_argument("--host", help="Bind address (default: app.host).")
    serve_parser.add_argument("--port", type=int, help="Port (default: app.port).")
    serve_parser.set_defaults(func=cli_serve)

    # --- 'list' command ---
    list_parser = subparsers.add_parser("list", help="List points sorted by number.")
    list_parser.add_argument("--text", help="Match against point name or id (case-insensitive).")
    list_parser.add_argument("--zone", type=Zone, choices=list(Zone), metavar="{" + ",".join(zones) + "}")
    list_parser.add_argument("--status", type=PointStatus, choices=list(PointStatus), metavar="{" + ",".join(statuses) + "}")
    list_parser.set_defaults(func=cli_list)

    # --- 'show' command ---
    show_parser = subparsers.add_parser("show", help="Show one point.")
    show_parser.add_argument("ref", help="Point id, number or deep link.")
    show_parser.set_defaults(func=cli_show)

    # --- 'status' command ---
    status_parser = subparsers.add_parser("status", help="Set a point's status (also stamps the check time).")
    status_parser.add_argument("ref", help="Point id or number.")
    status_parser.add_argument("status", choices=statuses)
    status_parser.set_defaults(func=cli_status)

    # --- 'qr' command ---
    qr_parser = subparsers.add_parser("qr", help="Print a point's deep link and QR image URL.")
    qr_parser.add_argument("ref", help="Point id or number.")
    qr_parser.add_argument("--size", type=int, help="QR size in pixels (default: services.qr.default_size).")
    qr_parser.add_argument("--origin", help="Origin the dashboard is served from (default: app.origin).")
    qr_parser.set_defaults(func=cli_qr)

    # --- 'render-map' command ---
    map_parser = subparsers.add_parser("render-map", help="Draw the machine map to an image file.")
    map_parser.add_argument("output", help="Output file (.png, .svg or .pdf).")
    map_parser.add_argument("--mode", choices=modes, default=RenderMode.SCREEN.value)
    map_parser.add_argument("--selected", help="Id of a point to highlight.")
    map_parser.add_argument("--width", type=float, default=1000.0, help="Surface width in pixels.")
    map_parser.add_argument("--height", type=float, default=500.0, help="Surface height in pixels.")
    map_parser.add_argument("--title", help="Caption above the map.")
    map_parser.set_defaults(func=cli_render_map)

    # --- 'render-dial' command ---
    dial_parser = subparsers.add_parser("render-dial", help="Draw the phasing dial to an image file.")
    dial_parser.add_argument("output", help="Output file (.png, .svg or .pdf).")
    dial_parser.add_argument("--angle", type=float, default=0.0, help="Simulated machine angle, 0-360.")
    dial_parser.add_argument("--mode", choices=modes, default=RenderMode.SCREEN.value)
    dial_parser.set_defaults(func=cli_render_dial)

    # --- 'export' command ---
    export_parser = subparsers.add_parser("export", help="Write the printable checklist as CSV.")
    export_parser.add_argument("output", help="Output CSV path.")
    export_parser.add_argument("--text", help="Match against point name or id.")
    export_parser.add_argument("--zone", type=Zone, choices=list(Zone), metavar="{" + ",".join(zones) + "}")
    export_parser.add_argument("--status", type=PointStatus, choices=list(PointStatus), metavar="{" + ",".join(statuses) + "}")
    export_parser.add_argument("--with-links", action='store_true', help="Add a deep_link column.")
    export_parser.add_argument("--origin", help="Origin used for deep links (default: app.origin).")
    export_parser.set_defaults(func=cli_export)

    # --- 'sop' command ---
    sop_parser = subparsers.add_parser("sop", help="Generate an operator SOP text for a point.")
    sop_parser.add_argument("ref", help="Point id or number.")
    sop_parser.set_defaults(func=cli_sop)

    # --- 'reset' command ---
    reset_parser = subparsers.add_parser("reset", help="Replace the stored points with the built-in dataset.")
    reset_parser.add_argument("--yes", action='store_true', help="Confirm the reset.")
    reset_parser.set_defaults(func=cli_reset)

    # --- 'add' command ---
    add_parser = subparsers.add_parser("add", help="Add a point (number and id default to the next free ones).")
    add_parser.add_argument("--id", help="Point id (default: P-<number>).")
    add_parser.add_argument("--number", type=int, help="Display number (default: highest + 1).")
    _add_point_field_arguments(add_parser, zones, criticalities)
    add_parser.set_defaults(func=cli_add)

    # --- 'edit' command ---
    edit_parser = subparsers.add_parser("edit", help="Change fields of a point; status and check time are kept.")
    edit_parser.add_argument("ref", help="Point id, number or deep link.")
    _add_point_field_arguments(edit_parser, zones, criticalities)
    edit_parser.set_defaults(func=cli_edit)

    # --- 'layout' command ---
    layout_parser = subparsers.add_parser("layout", help="Edit the machine schematic modules.")
    layout_sub = layout_parser.add_subparsers(title="Layout Commands", dest="layout_command", required=True)

    layout_list = layout_sub.add_parser("list", help="List layout modules.")
    layout_list.set_defaults(func=cli_layout_list)

    layout_add = layout_sub.add_parser("add", help="Add a module.")
    layout_add.add_argument("module_id")
    _add_module_arguments(layout_add)
    layout_add.set_defaults(func=cli_layout_add)

    layout_update = layout_sub.add_parser("update", help="Change fields of a module.")
    layout_update.add_argument("module_id")
    _add_module_arguments(layout_update)
    layout_update.set_defaults(func=cli_layout_update)

    layout_nudge = layout_sub.add_parser("nudge", help="Shift one geometry field, clamped to 0-100.")
    layout_nudge.add_argument("module_id")
    layout_nudge.add_argument("field", choices=GEOMETRY_FIELDS)
    layout_nudge.add_argument("delta", type=float)
    layout_nudge.set_defaults(func=cli_layout_nudge)

    layout_delete = layout_sub.add_parser("delete", help="Remove a module.")
    layout_delete.add_argument("module_id")
    layout_delete.set_defaults(func=cli_layout_delete)

    return parser


def main(argv: Optional[List[str]] = None):
    # 1. Load Core Configuration FIRST
    try:
        load_config()
    except ValueError as e:
        print(f"FATAL: Failed to load configuration: {e}", file=sys.stderr)
        sys.exit(1)

    # 2. Setup Logging
    setup_logging_from_config('app.log_file')
    logger = logging.getLogger(__name__)

    # 3. Parse Arguments
    args = build_parser().parse_args(argv)

    # 4. Execute Command Function
    logger.info(f"Executing command: {args.subcommand}")
    try:
        args.func(args)
    except KeyboardInterrupt:
        logger.warning("Process interrupted by user (Ctrl+C).")
        print("\nProcess interrupted.", file=sys.stderr)
        sys.exit(130)
    except Exception:
        logger.exception(f"Command '{args.subcommand}' failed:")
        print(f"Error: Command '{args.subcommand}' failed. Check logs.", file=sys.stderr)
        sys.exit(1)
    finally:
        logger.debug("Main process final cleanup.")


if __name__ == "__main__":
    main()
