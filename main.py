from __future__ import annotations

import argparse
import asyncio
import json
import logging
import mimetypes
from pathlib import Path
from typing import Any

from proposalfunnel.adapters.analysis import AnalysisError, AnalysisGenerator
from proposalfunnel.adapters.attachments import Attachment, validate_project_submission
from proposalfunnel.config import get_settings
from proposalfunnel.leads import LeadValidationError, list_leads, save_lead, set_lead_status
from proposalfunnel.report.composer import compose_report
from proposalfunnel.report.export import ExportError, ReportExporter
from proposalfunnel.report.layout import render_report
from proposalfunnel.report.sample import sample_report_input
from proposalfunnel.types import LeadStatus, ReportInput


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def _read_json_file(path_value: str) -> Any:
    path = Path(path_value).expanduser().resolve()
    if not path.exists() or not path.is_file():
        raise FileNotFoundError(f'File not found: {path}')
    return json.loads(path.read_text(encoding='utf-8'))


def _export_report(report_input: ReportInput, output: str | None) -> dict:
    pages = compose_report(report_input.client, report_input.analysis)
    if not pages:
        return {'status': 'error', 'message': 'Nothing to render: analysis is empty'}

    rendered = render_report(pages)
    result = asyncio.run(ReportExporter().export(rendered, report_input.client.name))
    if result is None:
        return {'status': 'error', 'message': 'Export already in progress'}

    output_path = Path(output).expanduser().resolve() if output else Path.cwd() / result.filename
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(result.pdf_bytes)
    return {
        'status': 'ok',
        'output': str(output_path),
        'filename': result.filename,
        'page_count': result.page_count,
        'pages': [{'page_id': page.page_id, 'kind': page.kind.value, 'heading': page.heading} for page in pages],
    }


def cmd_render(args: argparse.Namespace) -> int:
    try:
        payload = _read_json_file(args.input)
    except (FileNotFoundError, json.JSONDecodeError) as exc:
        _print_json({'status': 'error', 'message': str(exc)})
        return 2

    if isinstance(payload, dict) and 'analysis' not in payload:
        payload = {'analysis': payload}
    try:
        report_input = ReportInput.model_validate(payload)
    except Exception as exc:
        _print_json({'status': 'error', 'message': f'Invalid report input: {exc}'})
        return 2

    try:
        response = _export_report(report_input, args.output)
    except ExportError as exc:
        _print_json({'status': 'error', 'message': str(exc)})
        return 1
    _print_json(response)
    return 0 if response['status'] == 'ok' else 1


def cmd_sample(args: argparse.Namespace) -> int:
    try:
        response = _export_report(sample_report_input(), args.output)
    except ExportError as exc:
        _print_json({'status': 'error', 'message': str(exc)})
        return 1
    _print_json(response)
    return 0 if response['status'] == 'ok' else 1


def _load_attachment(path_value: str | None) -> Attachment | None:
    if not path_value:
        return None
    path = Path(path_value).expanduser().resolve()
    content_type = mimetypes.guess_type(path.name)[0] or 'application/octet-stream'
    return Attachment(filename=path.name, content_type=content_type, data=path.read_bytes())


def cmd_analyze(args: argparse.Namespace) -> int:
    description_path = Path(args.description_file).expanduser().resolve()
    if not description_path.exists():
        _print_json({'status': 'error', 'message': f'Description file not found: {description_path}'})
        return 2
    description = description_path.read_text(encoding='utf-8')

    try:
        attachment = _load_attachment(args.attachment)
        validate_project_submission(description, args.country, attachment)
    except (OSError, ValueError) as exc:
        _print_json({'status': 'error', 'message': str(exc)})
        return 2

    try:
        analysis = asyncio.run(
            AnalysisGenerator().generate(
                description,
                category=args.category,
                country=args.country,
                attachment=attachment,
            )
        )
    except (AnalysisError, ValueError) as exc:
        _print_json({'status': 'error', 'message': f'Failed to analyze project: {exc}'})
        return 1

    if args.output:
        output_path = Path(args.output).expanduser().resolve()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(analysis, ensure_ascii=False, indent=2), encoding='utf-8')
    _print_json({'status': 'ok', 'analysis': analysis})
    return 0


def cmd_lead(args: argparse.Namespace) -> int:
    try:
        payload = _read_json_file(args.input)
        lead = save_lead(payload)
    except LeadValidationError as exc:
        _print_json({'status': 'error', 'message': str(exc), 'fields': exc.missing})
        return 2
    except (FileNotFoundError, json.JSONDecodeError) as exc:
        _print_json({'status': 'error', 'message': str(exc)})
        return 2
    _print_json({'status': 'ok', 'lead': lead.model_dump(mode='json')})
    return 0


def cmd_leads(args: argparse.Namespace) -> int:
    status = LeadStatus(args.status) if args.status else None
    leads = list_leads(status)
    _print_json({'status': 'ok', 'count': len(leads), 'leads': [lead.model_dump(mode='json') for lead in leads]})
    return 0


def cmd_lead_status(args: argparse.Namespace) -> int:
    try:
        lead = set_lead_status(args.lead_id, LeadStatus(args.status))
    except FileNotFoundError as exc:
        _print_json({'status': 'error', 'message': str(exc)})
        return 2
    _print_json({'status': 'ok', 'lead': lead.model_dump(mode='json')})
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    from proposalfunnel.server import create_app

    settings = get_settings()
    host = args.host or settings.server_host
    port = args.port or settings.server_port
    logger = logging.getLogger('proposalfunnel.serve')
    logger.info('Starting %s on http://%s:%s', settings.app_name, host, port)
    create_app(settings).run(host=host, port=port, debug=False, threaded=True)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Proposal funnel backend CLI')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    sub = parser.add_subparsers(dest='command', required=True)

    render = sub.add_parser('render', help='Render a proposal PDF from a report JSON file')
    render.add_argument('--input', required=True, help='JSON file with {client, analysis} or a bare analysis')
    render.add_argument('--output', required=False, help='Output PDF path (defaults to the download filename)')
    render.set_defaults(func=cmd_render)

    sample = sub.add_parser('sample', help='Render the built-in sample proposal')
    sample.add_argument('--output', required=False, help='Output PDF path')
    sample.set_defaults(func=cmd_sample)

    analyze = sub.add_parser('analyze', help='Generate an analysis document with the language model')
    analyze.add_argument('--description-file', required=True, help='Text file with the project description')
    analyze.add_argument('--country', required=True, help='Client country')
    analyze.add_argument('--category', required=False, help='Service category')
    analyze.add_argument('--attachment', required=False, help='Optional project document (pdf/doc/docx/txt)')
    analyze.add_argument('--output', required=False, help='Write the analysis JSON to this path')
    analyze.set_defaults(func=cmd_analyze)

    lead = sub.add_parser('lead', help='Save a lead from a JSON file')
    lead.add_argument('--input', required=True, help='JSON file with the lead fields')
    lead.set_defaults(func=cmd_lead)

    statuses = [status.value for status in LeadStatus]
    leads = sub.add_parser('leads', help='List saved leads, newest first')
    leads.add_argument('--status', choices=statuses, required=False, help='Only leads in this status')
    leads.set_defaults(func=cmd_leads)

    lead_status = sub.add_parser('lead-status', help='Move a lead to another status')
    lead_status.add_argument('--id', dest='lead_id', required=True, help='Lead id')
    lead_status.add_argument('--status', choices=statuses, required=True)
    lead_status.set_defaults(func=cmd_lead_status)

    serve = sub.add_parser('serve', help='Run the HTTP API')
    serve.add_argument('--host', required=False)
    serve.add_argument('--port', type=int, required=False)
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    return int(args.func(args))


if __name__ == '__main__':
    raise SystemExit(main())
