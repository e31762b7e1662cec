"""ArchViz CLI entrypoints."""

from __future__ import annotations

import argparse
import asyncio
import json
import uuid
from pathlib import Path

from .analysis import PlanAnalyzer
from .assets import ImageAsset
from .config import EngineConfig
from .credentials import CredentialResolver, SettingsStore
from .engine import GenerationDispatcher
from .errors import ConfigError, GenerationError
from .history.archive import SessionArchive
from .history.stack import HistoryStack
from .prompts.catalog import CATALOGS
from .prompts.request import INTERIOR_INPUT_MODES, TABS, GenerationRequest
from .providers import default_registry
from .providers.base import ImageBackend
from .quota.gate import TIERS, QuotaGate, quota_summary
from .quota.store import QuotaRecord, QuotaStore
from .runs.events import EventWriter
from .utils import load_dotenv


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="archviz")
    sub = parser.add_subparsers(dest="command")

    generate = sub.add_parser("generate", help="Render one architectural image")
    generate.add_argument("--out", required=True, help="Output directory")
    generate.add_argument("--events", help="Path to events.jsonl")
    generate.add_argument("--tab", choices=TABS, default="exterior")
    generate.add_argument("--text", dest="free_text", default="", help="Free-text description")
    generate.add_argument("--edit", dest="edit_command", default="", help="Edit command for the source image")
    generate.add_argument("--render-style", dest="render_style_id", default="photo")
    generate.add_argument("--arch-style", dest="arch_style_id", default="")
    generate.add_argument("--scene", dest="scene_id", default="")
    generate.add_argument("--interior-style", dest="interior_style_id", default="")
    generate.add_argument("--room", dest="room_type_id", default="")
    generate.add_argument("--plan-style", dest="plan_style_id", default="")
    generate.add_argument("--mode", dest="interior_input_mode", choices=INTERIOR_INPUT_MODES, default="standard")
    generate.add_argument("--source", help="Path to the image being edited")
    generate.add_argument("--reference", help="Path to a reference image")
    generate.add_argument("--tier", choices=TIERS, default="standard")
    generate.add_argument("--identity", default="local", help="Quota identity")
    generate.add_argument("--api-key", dest="api_key", help="Personal backend key")

    analyze = sub.add_parser("analyze-plan", help="Describe a 2D floor plan as a render prompt")
    analyze.add_argument("--plan", required=True, help="Path to the floor plan image")
    analyze.add_argument("--style", dest="interior_style_id", default="")
    analyze.add_argument("--events", help="Path to events.jsonl")
    analyze.add_argument("--api-key", dest="api_key")

    quota = sub.add_parser("quota", help="Show or set an identity's daily quota")
    quota.add_argument("--identity", required=True)
    quota.add_argument("--set-limit", dest="set_limit", type=int, help="Store a new daily limit")
    quota.add_argument(
        "--privileged",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Set or clear the privileged flag; kept as stored when omitted",
    )

    styles = sub.add_parser("styles", help="List catalog entries")
    styles.add_argument("catalog", nargs="?", choices=sorted(CATALOGS), help="Catalog to list")
    return parser


def _new_session_id() -> str:
    return uuid.uuid4().hex[:12]


def _resolve_backend(config: EngineConfig) -> ImageBackend:
    backend = default_registry().get(config.backend)
    if backend is None:
        raise RuntimeError(f"Unknown backend '{config.backend}'.")
    return backend


def _quota_store(config: EngineConfig) -> QuotaStore:
    store = QuotaStore(config.quota_db_path)
    store.init_db()
    return store


def _handle_generate(args: argparse.Namespace) -> int:
    config = EngineConfig.from_env()
    out_dir = Path(args.out)
    events_path = Path(args.events) if args.events else out_dir / "events.jsonl"
    try:
        models = config.model_registry()
    except ConfigError as exc:
        print(exc.user_message)
        return 1
    events = EventWriter(events_path, _new_session_id())
    gate = QuotaGate(_quota_store(config))
    dispatcher = GenerationDispatcher(
        _resolve_backend(config),
        history=HistoryStack(),
        archive=SessionArchive(),
        quota_gate=gate,
        credentials=CredentialResolver(SettingsStore(config.settings_path)),
        events=events,
        models=models,
    )
    try:
        request = GenerationRequest(
            tab=args.tab,
            render_style_id=args.render_style_id,
            arch_style_id=args.arch_style_id,
            interior_style_id=args.interior_style_id,
            plan_style_id=args.plan_style_id,
            scene_id=args.scene_id,
            room_type_id=args.room_type_id,
            interior_input_mode=args.interior_input_mode,
            free_text=args.free_text,
            edit_command=args.edit_command,
            source_image=ImageAsset.from_path(args.source) if args.source else None,
            reference_image=ImageAsset.from_path(args.reference) if args.reference else None,
        )
    except (OSError, ValueError) as exc:
        print(f"Invalid input: {exc}")
        return 2

    events.emit("session_started", host_bridge=False)
    state = gate.load(args.identity)
    try:
        result = asyncio.run(dispatcher.generate(request, state, args.tier, args.api_key))
    except GenerationError as exc:
        print(exc.user_message)
        return 1
    finally:
        events.emit("session_closed")

    if result.advisory:
        print(result.advisory.message)
    path = result.asset.save(out_dir / f"{result.record.id}.{result.asset.extension}")
    print(f"Model: {result.model} ({result.decision.granted_tier})")
    print(f"Saved {path}")
    return 0


def _handle_analyze_plan(args: argparse.Namespace) -> int:
    config = EngineConfig.from_env()
    events_path = Path(args.events) if args.events else Path(args.plan).with_suffix(".events.jsonl")
    try:
        models = config.model_registry()
    except ConfigError as exc:
        print(exc.user_message)
        return 1
    analyzer = PlanAnalyzer(
        _resolve_backend(config),
        credentials=CredentialResolver(SettingsStore(config.settings_path)),
        events=EventWriter(events_path, _new_session_id()),
        models=models,
    )
    try:
        plan = ImageAsset.from_path(args.plan)
    except OSError as exc:
        print(f"Invalid input: {exc}")
        return 2
    try:
        text = asyncio.run(analyzer.analyze(plan, args.interior_style_id, args.api_key))
    except GenerationError as exc:
        print(exc.user_message)
        return 1
    print(text)
    return 0


def _keep_privileged(flag: bool | None, existing: QuotaRecord | None) -> bool:
    if flag is not None:
        return flag
    return existing.is_privileged if existing else False


def _handle_quota(args: argparse.Namespace) -> int:
    config = EngineConfig.from_env()
    store = _quota_store(config)
    if args.set_limit is not None:
        if args.set_limit < 0:
            print("Daily limit must be non-negative.")
            return 2
        existing = store.get_record(args.identity)
        store.upsert_record(
            args.identity,
            daily_limit=args.set_limit,
            used_today=existing.used_today if existing else 0,
            last_usage_date=existing.last_usage_date if existing else None,
            is_privileged=_keep_privileged(args.privileged, existing),
        )
    state = QuotaGate(store).load(args.identity)
    print(json.dumps(quota_summary(state), indent=2))
    return 0


def _handle_styles(args: argparse.Namespace) -> int:
    names = [args.catalog] if args.catalog else sorted(CATALOGS)
    for name in names:
        print(f"[{name}]")
        for entry in CATALOGS[name].values():
            print(f"  {entry.id:<18} {entry.label}")
    return 0


def main() -> None:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args()
    if args.command == "generate":
        raise SystemExit(_handle_generate(args))
    if args.command == "analyze-plan":
        raise SystemExit(_handle_analyze_plan(args))
    if args.command == "quota":
        raise SystemExit(_handle_quota(args))
    if args.command == "styles":
        raise SystemExit(_handle_styles(args))
    parser.print_help()
    raise SystemExit(1)


if __name__ == "__main__":
    main()
