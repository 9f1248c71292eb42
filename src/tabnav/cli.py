import argparse
import asyncio
import logging
import sys

from .navigator import Navigator
from .prefs import Preferences
from .settings import Settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tabnav", description="Tabbed link directory: serve, inspect, export, edit")
    parser.add_argument("--username", help="Administrator user (needed for edits)")
    parser.add_argument("--password", help="Administrator password")
    parser.add_argument("--remember", action="store_true", help="Keep the login for later runs")
    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("serve", help="Run the web front end")
    sub.add_parser("list", help="List groups and sites")
    sub.add_parser("check", help="Show session and configuration summary")

    exp = sub.add_parser("export", help="Write the directory as JSON")
    exp.add_argument("--file", help="Output file (default: stdout)")

    addg = sub.add_parser("add-group", help="Add a group")
    addg.add_argument("--name", required=True)
    addg.add_argument("--private", action="store_true")

    adds = sub.add_parser("add-site", help="Add a site to a group")
    adds.add_argument("--group", type=int, required=True, help="Group ID")
    adds.add_argument("--name", required=True)
    adds.add_argument("--url", required=True)
    adds.add_argument("--icon", default=None)
    adds.add_argument("--description", default=None)

    delg = sub.add_parser("delete-group", help="Delete a group and ALL of its sites")
    delg.add_argument("--id", type=int, required=True)
    delg.add_argument("--yes", action="store_true", help="Confirm the cascading delete")

    dels = sub.add_parser("delete-site", help="Delete a site")
    dels.add_argument("--id", type=int, required=True)

    setc = sub.add_parser("set-config", help="Set one configuration key")
    setc.add_argument("key")
    setc.add_argument("value")
    return parser


def print_notices(nav):
    for n in nav.drain_notices():
        out = sys.stdout if n.style in ("success", "info") else sys.stderr
        print(n.message, file=out)


async def run_command(nav: Navigator, args) -> int:
    await nav.startup()
    if args.username:
        if not await nav.login(args.username, args.password or "", args.remember):
            print_notices(nav)
            return 1

    if args.cmd == "list":
        for g in nav.store.groups:
            print(f"{g.id}\t{g.name}{'' if g.is_public else ' (private)'}")
            for s in g.sites:
                print(f"  {s.id}\t{s.name}\t{s.url}")
        ok = True
    elif args.cmd == "check":
        print(f"session={nav.session.state.value} view={nav.view_mode.value}")
        print(f"groups={len(nav.store.groups)} sites={sum(len(g.sites) for g in nav.store.groups)}")
        for k, v in sorted(nav.config.live.items()):
            print(f"{k}={v}")
        ok = True
    elif args.cmd == "export":
        text = nav.store.export_text()
        if args.file:
            with open(args.file, "w", encoding="utf-8") as f:
                f.write(text)
        else:
            print(text)
        ok = True
    elif args.cmd == "add-group":
        ok = await nav.create_group(args.name, not args.private)
    elif args.cmd == "add-site":
        ok = await nav.create_site(args.group, args.name, args.url, icon=args.icon, description=args.description)
    elif args.cmd == "delete-group":
        if not args.yes:
            print("Deleting a group removes all of its sites; re-run with --yes to confirm.", file=sys.stderr)
            return 1
        ok = await nav.delete_group(args.id)
    elif args.cmd == "delete-site":
        ok = await nav.delete_site(args.id)
    elif args.cmd == "set-config":
        draft = nav.config.draft
        draft[args.key] = args.value
        ok = await nav.save_config(draft)
    else:
        ok = False
    print_notices(nav)
    return 0 if ok else 1


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = Settings.from_env()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if not args.cmd:
        parser.print_help()
        return 0

    prefs = Preferences(settings.prefs_path)
    nav = Navigator(settings.make_client(prefs), prefs)

    if args.cmd == "serve":
        from .web import create_app
        app = create_app(nav, settings)
        logger.info("Serving on http://%s:%s (%s client)", settings.host, settings.port,
                    "demo" if settings.demo else settings.api_url)
        app.run(host=settings.host, port=settings.port, debug=False, threaded=False)
        return 0

    return asyncio.run(run_command(nav, args))


if __name__ == "__main__":
    sys.exit(main())
