"""
Proposal funnel HTTP API (Flask)

Endpoints:
  - GET  /health
  - POST /api/analyze          multipart: description, category, country, file
  - POST /api/leads            JSON lead payload
  - POST /api/report/session   JSON {client, analysis}; binds it to the visitor session
  - DELETE /api/report/session drops the visitor's report session
  - GET  /api/report           page summary of the visitor's report
  - GET  /api/report/pdf       proposal PDF download
"""

from __future__ import annotations

import asyncio
import io
import logging
import traceback
from typing import Any

from flask import Flask, jsonify, request, send_file, session
from flask_cors import CORS

from .adapters.analysis import AnalysisError, AnalysisGenerator
from .adapters.attachments import Attachment, validate_project_submission
from .config import Settings, get_settings
from .leads import LeadValidationError, save_lead
from .report.composer import PageDescriptor, compose_report
from .report.export import ExportError
from .report.layout import render_report
from .session import ReportSession, SessionStore, resolve_report_input


logger = logging.getLogger(__name__)

_SESSION_COOKIE_KEY = 'report_session_id'


def _attachment_from_request() -> Attachment | None:
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        return None
    return Attachment(
        filename=upload.filename,
        content_type=upload.mimetype or 'application/octet-stream',
        data=upload.read(),
    )


def _page_summary(page: PageDescriptor) -> dict[str, Any]:
    return {
        'pageId': page.page_id,
        'kind': page.kind.value,
        'number': page.number,
        'heading': page.heading,
        'sections': [
            {'title': section.title, 'items': len(section.content), 'dimmed': section.dimmed}
            for section in page.sections
        ],
    }


def create_app(
    settings: Settings | None = None,
    *,
    generator: AnalysisGenerator | None = None,
    store: SessionStore | None = None,
) -> Flask:
    settings = settings or get_settings()
    if store is None:
        store = SessionStore(ttl_seconds=settings.session_ttl_seconds, max_sessions=settings.max_sessions)

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    CORS(app, supports_credentials=True)

    def _generator() -> AnalysisGenerator:
        nonlocal generator
        if generator is None:
            generator = AnalysisGenerator(settings=settings)
        return generator

    def _current_session() -> ReportSession:
        report_session = store.get_or_create(session.get(_SESSION_COOKIE_KEY))
        session[_SESSION_COOKIE_KEY] = report_session.session_id
        return report_session

    def _compose(report_session: ReportSession):
        report_input = asyncio.run(
            resolve_report_input(report_session.bucket, fallback_delay=settings.fallback_delay_seconds)
        )
        pages = compose_report(report_input.client, report_input.analysis, settings=settings)
        return report_input, pages

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({'status': 'healthy', 'service': settings.app_name, 'sessions': len(store)}), 200

    @app.route('/api/analyze', methods=['POST'])
    def analyze():
        description = request.form.get('description', '')
        category = request.form.get('category') or None
        country = request.form.get('country', '')
        try:
            attachment = _attachment_from_request()
            validate_project_submission(description, country, attachment, settings=settings)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        try:
            analysis = asyncio.run(
                _generator().generate(description, category=category, country=country, attachment=attachment)
            )
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except AnalysisError as e:
            logger.error('Analysis API error: %s', e)
            return jsonify({'error': 'Failed to analyze project'}), 500
        except Exception as e:
            logger.error('Analysis API error: %s', e)
            logger.error(traceback.format_exc())
            return jsonify({'error': 'Failed to analyze project'}), 500
        return jsonify(analysis), 200

    @app.route('/api/leads', methods=['POST'])
    def create_lead():
        data = request.get_json(silent=True)
        if not data:
            return jsonify({'error': 'Invalid JSON request'}), 400
        try:
            lead = save_lead(data)
        except LeadValidationError as e:
            logger.info('Rejected lead: %s', e)
            return jsonify({'error': 'Missing required fields', 'fields': e.missing}), 400
        except Exception as e:
            logger.error('Lead creation error: %s', e)
            logger.error(traceback.format_exc())
            return jsonify({'error': 'Failed to create lead'}), 500
        return jsonify({'success': True, 'leadId': str(lead.id)}), 201

    @app.route('/api/report/session', methods=['POST'])
    def store_report_session():
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not isinstance(data.get('analysis'), dict):
            return jsonify({'error': "Report data must include an 'analysis' object"}), 400
        report_session = _current_session()
        store.store(report_session.session_id, data)
        return jsonify({'success': True}), 200

    @app.route('/api/report/session', methods=['DELETE'])
    def clear_report_session():
        session_id = session.pop(_SESSION_COOKIE_KEY, None)
        if session_id:
            store.discard(session_id)
        return jsonify({'success': True}), 200

    @app.route('/api/report', methods=['GET'])
    def report_summary():
        report_session = _current_session()
        report_input, pages = _compose(report_session)
        return (
            jsonify(
                {
                    'client': report_input.client.wire_payload(),
                    'pageCount': len(pages),
                    'pages': [_page_summary(page) for page in pages],
                }
            ),
            200,
        )

    @app.route('/api/report/pdf', methods=['GET'])
    def report_pdf():
        report_session = _current_session()
        exporter = report_session.exporter
        if exporter.exporting:
            return jsonify({'error': 'Export already in progress'}), 409

        report_input, pages = _compose(report_session)
        if not pages:
            return jsonify({'error': 'No report to export'}), 404

        try:
            rendered = render_report(pages, settings=settings)
            result = asyncio.run(exporter.export(rendered, report_input.client.name))
        except ExportError as e:
            return jsonify({'error': str(e)}), 500
        if result is None:
            return jsonify({'error': 'Export already in progress'}), 409

        return send_file(
            io.BytesIO(result.pdf_bytes),
            mimetype='application/pdf',
            as_attachment=True,
            download_name=result.filename,
        )

    return app
