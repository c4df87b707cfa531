from __future__ import annotations

import argparse
import json
from pathlib import Path

from pydantic import ValidationError

from incident_ops.compiler import compile_markdown
from incident_ops.report import generate_report


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="incident-ops")
    subparsers = parser.add_subparsers(dest="command", required=True)

    gen_parser = subparsers.add_parser(
        "generate-report", help="Assemble an incident report DOCX from a JSON field set"
    )
    gen_parser.add_argument(
        "--input",
        required=True,
        help="Path to the report JSON (camelCase or snake_case keys)",
    )
    gen_parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory for the generated file (default: OUTPUT_BASE_DIR env or ./out)",
    )
    gen_parser.add_argument(
        "--output",
        default=None,
        help="Exact output path (overrides --output-dir and the generated filename)",
    )
    gen_parser.add_argument(
        "--logo",
        default=None,
        action=argparse.BooleanOptionalAction,
        help="Fetch the organization logo (default: INCIDENT_FETCH_LOGO env or enabled).",
    )

    compile_parser = subparsers.add_parser(
        "compile-markdown", help="Print the rendered blocks of a markdown file as JSON"
    )
    compile_parser.add_argument("path", help="Path to a markdown file")

    args = parser.parse_args(argv)

    if args.command == "generate-report":
        try:
            generate_report(
                args.input,
                output_dir=args.output_dir,
                output=args.output,
                fetch_logo=args.logo,
            )
        except FileNotFoundError as exc:
            print(f"ERROR: input not found: {exc.filename or args.input}")
            return 2
        except ValidationError as exc:
            print("\nValidation error:\n")
            print(exc)
            raise SystemExit(1)
        return 0

    if args.command == "compile-markdown":
        text = Path(args.path).read_text(encoding="utf-8")
        print(json.dumps(rendered_blocks_payload(text), indent=2, ensure_ascii=False))
        return 0

    parser.print_help()
    return 2


def rendered_blocks_payload(text: str) -> list[dict]:
    payload = []
    for block in compile_markdown(text):
        payload.append(
            {
                "kind": block.kind.value,
                "text": block.text,
                "bullet": block.bullet,
                "left_indent_in": block.left_indent_in,
                "space_before_pt": block.space_before_pt,
                "space_after_pt": block.space_after_pt,
                "runs": [
                    {
                        "text": run.text,
                        "bold": run.bold,
                        "italic": run.italic,
                        "size_pt": run.size_pt,
                        "color": run.color,
                    }
                    for run in block.runs
                ],
            }
        )
    return payload


if __name__ == "__main__":
    raise SystemExit(main())
