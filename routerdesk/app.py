# routerdesk/app.py
from __future__ import annotations
import argparse, logging, platform, sys
from typing import Optional

from .constants import APP_NAME, __version__
from .core.catalog import unique_names, qualified_ids, provider_rows, pick_default
from .core.chat_session import SessionState, StreamingChatSession
from .core.model_ranking import RankingScheme
from .core.transcript import Transcript
from .infra.llm.base import ChatError
from .infra.llm.router_client import RouterClient
from .logging_config import init_logging
from .paths import AppPaths
from .settings import load_settings, apply_env_overrides, set_default_model

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog=APP_NAME.lower(), description=f"{APP_NAME} router console")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--server-url", type=str, default=None, help="Router base URL, e.g. http://localhost:8080")
    p.add_argument("--api-key", type=str, default=None, help="Router API key (Bearer)")

    # logging / paths
    p.add_argument("--data-dir", type=str, default=None, help="Override data directory")
    p.add_argument("--log-level", type=str, default=None, help="DEBUG, INFO, WARNING, ERROR")
    p.add_argument("--no-console-log", action="store_true", help="Disable console logging")

    sub = p.add_subparsers(dest="command", required=True)

    m = sub.add_parser("models", help="List the model catalog in display order")
    view = m.add_mutually_exclusive_group()
    view.add_argument("--qualified", action="store_true", help="Show provider/model ids (fallback targets)")
    view.add_argument("--by-provider", action="store_true", help="Show each enabled provider's pulled models")

    c = sub.add_parser("chat", help="Stream one reply to stdout")
    c.add_argument("prompt", nargs="?", default=None, help="User message; read from stdin when omitted")
    c.add_argument("-m", "--model", type=str, default=None, help="Model id (default: settings, then top of catalog)")
    c.add_argument("-s", "--system", type=str, default=None, help="Optional system message")
    c.add_argument("--remember", action="store_true", help="Save the chosen model as the default")
    return p


def make_client(cfg: dict, args: argparse.Namespace) -> RouterClient:
    server = cfg.get("server", {})
    return RouterClient(
        args.server_url or server.get("base_url"),
        api_key=args.api_key or server.get("api_key"),
        timeout=float(server.get("timeout") or 120),
    )


def run_models(client: RouterClient, scheme: RankingScheme, qualified: bool = False,
               by_provider: bool = False) -> int:
    log = logging.getLogger("models")
    try:
        if by_provider:
            rows = provider_rows(client.list_providers(), scheme)
            log.info("Providers: %d pulled models", len(rows))
            for provider, mid in rows:
                print(f"{provider}\t{mid}")
            return EXIT_OK
        entries = client.list_models()
    except ChatError as exc:
        log.error("Could not load models: %s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_FAILED
    ids = qualified_ids(entries, scheme) if qualified else unique_names(entries, scheme)
    log.info("Catalog: %d entries, %d shown", len(entries), len(ids))
    for mid in ids:
        print(mid)
    return EXIT_OK


def _resolve_model(client: RouterClient, scheme: RankingScheme, requested: Optional[str]) -> Optional[str]:
    if requested:
        return requested
    try:
        return pick_default(unique_names(client.list_models(), scheme))
    except ChatError as exc:
        logging.getLogger("models").warning("Catalog unavailable (%s)", exc)
        return None


def run_chat(client: RouterClient, model: str, prompt: str, system: Optional[str] = None) -> int:
    log = logging.getLogger("chat")
    transcript = Transcript()
    if system:
        transcript.add_system(system)
    transcript.add_user(prompt)

    session = StreamingChatSession(client)
    printed = 0
    try:
        for value in session.start(model, transcript):
            # replace semantics: print only what the screen hasn't shown yet
            sys.stdout.write(value[printed:])
            sys.stdout.flush()
            printed = len(value)
    except KeyboardInterrupt:
        session.stop()
    except ChatError as exc:
        sys.stdout.write("\n")
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_FAILED
    sys.stdout.write("\n")
    log.info("Session ended: %s", session.state.value)
    return EXIT_CANCELLED if session.state is SessionState.CANCELLED else EXIT_OK


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)

    paths = AppPaths.resolve(args.data_dir).ensure()
    settings_path = paths.settings_file
    cfg = apply_env_overrides(load_settings(settings_path))

    level = (args.log_level or cfg["logging"]["level"]).upper()
    init_logging(
        paths.log_file,
        level=level,
        max_bytes=int(cfg["logging"]["max_bytes"]),
        backup_count=int(cfg["logging"]["backup_count"]),
        also_console=(not args.no_console_log),
    )
    log = logging.getLogger("boot")
    log.info("=== %s %s starting ===", APP_NAME, __version__)
    log.info("Platform: %s | Python: %s", platform.platform(), platform.python_version())
    log.info("Data dir: %s | Log file: %s", paths.data_dir, paths.log_file)
    log.info("Settings: %s", settings_path)

    scheme = RankingScheme(cfg["ranking"]["families"])
    client = make_client(cfg, args)
    log.info("Router: %s", client.base_url)

    try:
        if args.command == "models":
            return run_models(client, scheme, args.qualified, args.by_provider)

        prompt = args.prompt if args.prompt is not None else sys.stdin.read()
        if not prompt.strip():
            print("chat needs a non-empty prompt", file=sys.stderr)
            return 2
        model = _resolve_model(client, scheme, args.model or cfg["chat"].get("default_model"))
        if not model:
            print("No model available; pass --model", file=sys.stderr)
            return 2
        log.info("Chat model: %s", model)
        if args.remember:
            set_default_model(settings_path, load_settings(settings_path), model)
        return run_chat(client, model, prompt, args.system)
    finally:
        client.close()


if __name__ == "__main__":
    raise SystemExit(main())
