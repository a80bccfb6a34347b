import argparse
import logging
import sys

from . import crud
from .config import load_config
from .cookbook import Cookbook
from .log import setup_logging
from .recipes import drafts_from_entries, load_recipes

logger = logging.getLogger(__name__)


def open_cookbook(args) -> Cookbook:
    cookbook = Cookbook(load_config(args.env_file))
    cookbook.connect()
    if not cookbook.is_ready:
        cookbook.close()
        sys.exit("Could not open the cookbook; check COOKBOOK_STORE_CONFIG")
    return cookbook


def serve(args):
    import uvicorn

    from .app import create_app

    uvicorn.run(create_app(load_config(args.env_file)), host=args.host, port=args.port)


def list_recipes(args):
    cookbook = open_cookbook(args)
    try:
        print(f"Cookbook {cookbook.user_id}: {len(cookbook.recipes)} recipe(s).")
        for r in cookbook.recipes:
            print(f"- {r.title}")
    finally:
        cookbook.close()


def import_recipes(args):
    cookbook = open_cookbook(args)
    try:
        entries = load_recipes(args.file)
        if not entries:
            print(f"{args.file} not found or empty")
            return
        existing = {r.title for r in cookbook.recipes}
        added = 0
        for draft in drafts_from_entries(entries):
            if draft.title in existing:
                continue
            crud.create_recipe(cookbook.store, cookbook.recipes_path, draft)
            existing.add(draft.title)
            added += 1
        print(f"Imported {added} recipes")
    finally:
        cookbook.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cookbook", description="Family cookbook")
    parser.add_argument("--env-file", default=None, help="path to a .env file")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("serve", help="run the web app")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.set_defaults(func=serve)

    p = sub.add_parser("list", help="print the recipes in the cookbook")
    p.set_defaults(func=list_recipes)

    p = sub.add_parser("import", help="add recipes from a JSON file")
    p.add_argument("file")
    p.set_defaults(func=import_recipes)
    return parser


def main(argv=None):
    setup_logging()
    args = build_parser().parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
