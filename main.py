import argparse
import json
import os
import sys

from xlfsync.config.settings import load_settings, CONFIG_FILE
from xlfsync.services.refresh_service import RefreshService
from xlfsync.parser import load_document, save_document
from xlfsync.refresh import update_master
from xlfsync.dts import format_document_for_dts
from xlfsync.xliff_obj import TranslationUnit, Note
from xlfsync.errors import XlfSyncError
from xlfsync import workspace
from xlfsync.logger import get_logger, setup_exception_hook

logger = get_logger(__name__)


def unit_from_dict(data: dict) -> TranslationUnit:
    """Builds a master trans-unit from one entry of an extracted-units JSON file."""
    notes = []
    if data.get("developer_note"):
        notes.append(Note.developer(data["developer_note"]))
    if data.get("description"):
        notes.append(Note.description(data["description"]))
    return TranslationUnit(
        id=data["id"],
        source=data.get("source", ""),
        notes=notes,
        translate=data.get("translate", True),
        max_width=data.get("maxwidth"),
        size_unit=data.get("size_unit"),
        al_object_target=data.get("al_object_target"),
    )


def cmd_refresh(service, args):
    result = service.refresh_folder(args.folder, args.match_file, args.sort_only)
    print(result.message())


def cmd_sort(service, args):
    result = service.refresh_folder(args.folder, sort_only=True)
    print(result.message())


def cmd_match(service, args):
    matched = service.match_files(workspace.find_language_files(args.folder))
    print(f"Matched {matched} translations")


def cmd_import_dts(service, args):
    document = service.import_dts(args.file, args.folder)
    print(f"Imported {os.path.basename(args.file)} into {os.path.basename(document.path)}")


def cmd_format_dts(service, args):
    master_name = os.path.basename(workspace.find_master_file(os.path.dirname(os.path.abspath(args.file))))
    document = load_document(args.file)
    format_document_for_dts(document, master_name)
    save_document(document, args.file, service.settings.replace_self_closing_xlf_tags)
    print(f"Formatted {os.path.basename(args.file)} for the translation service")


def cmd_update_master(service, args):
    with open(args.units_json, "r", encoding="utf-8") as f:
        units = [unit_from_dict(d) for d in json.load(f)]
    master = load_document(args.master)
    result = update_master(master, units)
    save_document(master, args.master, service.settings.replace_self_closing_xlf_tags)
    print(result.message())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="xlfsync", description="Keep AL XLIFF translation files in sync")
    parser.add_argument("--config", default=CONFIG_FILE, help="Path to the JSON settings file")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("refresh", help="Refresh language files from the g.xlf file")
    p.add_argument("folder", help="Translation folder")
    p.add_argument("--match-file", help="Extra .xlf file to take suggestions from")
    p.add_argument("--sort-only", action="store_true", help="Only sort the language files like the g.xlf file")
    p.set_defaults(func=cmd_refresh)

    p = sub.add_parser("sort", help="Sort language files like the g.xlf file")
    p.add_argument("folder", help="Translation folder")
    p.set_defaults(func=cmd_sort)

    p = sub.add_parser("match", help="Match untranslated units against each file's own translations")
    p.add_argument("folder", help="Translation folder")
    p.set_defaults(func=cmd_match)

    p = sub.add_parser("import-dts", help="Import a file returned by the translation service")
    p.add_argument("file", help=".xlf or .zip output file")
    p.add_argument("folder", help="Translation folder")
    p.set_defaults(func=cmd_import_dts)

    p = sub.add_parser("format-dts", help="Convert [NAB: ...] tokens to state attributes")
    p.add_argument("file", help="Language .xlf file")
    p.set_defaults(func=cmd_format_dts)

    p = sub.add_parser("update-master", help="Merge extracted trans-units into the g.xlf file")
    p.add_argument("master", help="Path to the g.xlf file")
    p.add_argument("units_json", help="JSON list of extracted trans-units")
    p.set_defaults(func=cmd_update_master)

    return parser


def main(argv=None):
    setup_exception_hook()
    args = build_parser().parse_args(argv)
    try:
        service = RefreshService(load_settings(args.config))
        args.func(service, args)
    except (XlfSyncError, FileNotFoundError, KeyError, json.JSONDecodeError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
