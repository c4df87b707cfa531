from __future__ import annotations

from pathlib import Path

from incident_ops.config import (
    get_branding,
    get_fetch_logo,
    get_logo_timeout,
    get_logo_url,
    get_output_base_dir,
    load_env,
)
from incident_ops.identity import IdentityAsset, fetch_identity_asset
from incident_ops.render_docx import assemble_report
from incident_ops.report_model import ReportFields, load_report_fields, report_filename

DEFAULT_OUTPUT_DIR = Path("out")


def resolve_output_path(
    fields: ReportFields, output_dir: str | None = None, output: str | None = None
) -> Path:
    if output:
        return Path(output)
    if output_dir:
        base_dir = Path(output_dir)
    else:
        base_dir = get_output_base_dir() or DEFAULT_OUTPUT_DIR
    return base_dir / report_filename(fields)


def resolve_identity_asset(fetch_logo: bool | None = None) -> IdentityAsset:
    if fetch_logo is None:
        fetch_logo = get_fetch_logo()
    if not fetch_logo:
        return IdentityAsset.wordmark()
    return fetch_identity_asset(get_logo_url(), timeout=get_logo_timeout())


def generate_report(
    input_path: str,
    *,
    output_dir: str | None = None,
    output: str | None = None,
    fetch_logo: bool | None = None,
) -> Path:
    load_env()
    fields = load_report_fields(input_path)
    identity_asset = resolve_identity_asset(fetch_logo)
    logo_mode = "image" if identity_asset.has_image else "wordmark"
    print(f"Logo: {logo_mode}")

    report = assemble_report(fields, identity_asset, get_branding())
    out_path = report.save(resolve_output_path(fields, output_dir, output))
    print(f"Saved: {out_path}")
    return out_path
