#!/usr/bin/env python3
"""
Arduino Project Builder CLI.

Usage:
  python cli.py generate "termômetro com LCD"     # Generate and print a project
  python cli.py generate --example --json         # Built-in example, JSON output
  python cli.py serve                             # Start web server
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

EXAMPLE_DESCRIPTION = (
    "Um semáforo para pedestres com um botão. Quando o botão é pressionado, a luz verde "
    "do carro fica amarela por 3 segundos, depois vermelha. Em seguida, a luz verde do "
    "pedestre acende por 10 segundos, pisca por 3 segundos e apaga. Finalmente, a luz "
    "verde do carro acende novamente."
)

STATUS_LINES = {
    "loading": "⏳ A IA está montando seu projeto... isso pode levar alguns segundos.",
    "succeeded": "✅ Projeto gerado.",
}


def render_project(project) -> str:
    """Plain-text view: summary, parts list, wiring, sketch."""
    lines = [f"{'═' * 60}", f"📦 {project.project_name}", f"{'═' * 60}"]
    if project.description:
        lines += ["", project.description]
    lines += ["", f"🔩 Componentes ({project.total_parts}):"]
    for c in project.components:
        note = f"  — {c.notes}" if c.notes else ""
        lines.append(f"   {c.quantity}x {c.name}{note}")
    if project.libraries:
        lines += ["", f"📚 Bibliotecas: {', '.join(project.libraries)}"]
    lines += ["", "🔌 Circuito:", project.circuit_diagram, "", "💻 Código:", project.code]
    return "\n".join(lines)


def cmd_generate(args) -> int:
    """Run one generation request."""
    from dataclasses import asdict
    from arduino_builder.generator import ProjectGenerator
    from arduino_builder.orchestrator import RequestOrchestrator
    from arduino_builder.state import Failed, state_to_dict

    description = EXAMPLE_DESCRIPTION if args.example else " ".join(args.description)

    def on_state(state):
        if isinstance(state, Failed):
            print(f"❌ {state.message}", file=sys.stderr)
        elif state.kind_name in STATUS_LINES:
            print(STATUS_LINES[state.kind_name], file=sys.stderr)

    orch = RequestOrchestrator(ProjectGenerator().generate)
    orch.on_state = on_state
    state = asyncio.run(orch.submit(description))

    if isinstance(state, Failed):
        return 1

    if args.json:
        print(json.dumps(state_to_dict(state), indent=2, ensure_ascii=False))
    else:
        print(render_project(state.project))

    if args.output:
        Path(args.output).write_text(json.dumps(asdict(state.project), indent=2, ensure_ascii=False))
        print(f"\nSaved to {args.output}", file=sys.stderr)
    return 0


def cmd_serve(args) -> int:
    """Start the web server."""
    import uvicorn
    from arduino_builder.config import CONFIG
    host = args.host or CONFIG.host
    port = args.port or CONFIG.port
    print(f"Starting server on {host}:{port}")
    uvicorn.run("arduino_builder.api.server:app", host=host, port=port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Arduino Project Builder — description to sketch, parts and wiring",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command")

    # generate
    p_gen = sub.add_parser("generate", help="Generate a project")
    p_gen.add_argument("description", nargs="*", help="Project description")
    p_gen.add_argument("--example", action="store_true", help="Use the built-in traffic light example")
    p_gen.add_argument("--json", action="store_true", help="Output JSON")
    p_gen.add_argument("-o", "--output", help="Save project to file")

    # serve
    p_serve = sub.add_parser("serve", help="Start web server")
    p_serve.add_argument("--host", default=None)
    p_serve.add_argument("--port", type=int, default=None)
    p_serve.add_argument("--reload", action="store_true")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    return {"generate": cmd_generate, "serve": cmd_serve}[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
