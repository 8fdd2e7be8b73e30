#!/usr/bin/env python3
"""
Flask web application for the URL vault.
Features: URL download form, direct uploads, metadata title search, stored file serving, key lookup.
"""

from flask import Flask, render_template, jsonify, request, redirect, url_for, send_from_directory, current_app
from werkzeug.middleware.proxy_fix import ProxyFix
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_compress import Compress
import logging
import os
import secrets
from datetime import datetime, timezone

from cors_config import configure_cors
from urlvault.errors import StoreError, UploadRejected
from urlvault.extraction.download import DownloadResult, fetch_content
from urlvault.ingestion.ingest import ingest_submission
from urlvault.ingestion.submission import Submission, sanitize_input
from urlvault.ingestion.upload import Upload, ingest_upload
from urlvault.ingestion.url_utils import resolve_key
from urlvault.search.metadata_search import SearchState, run_search, search_metadata
from urlvault.settings import load_settings
from urlvault.storage.layout import STORAGE_ROOTS, URL_ROOT, url_path
from urlvault.storage.store import FilesystemStore

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

APP_VERSION = '0.1.0'

# Load configuration from .env / environment
SETTINGS = load_settings()

app = Flask(__name__)
# Configure app to trust proxy headers (nginx forwards X-Forwarded-Proto, etc.)
app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)
app = configure_cors(app, SETTINGS.cors_origins)
app.config['SECRET_KEY'] = os.environ.get('FLASK_SECRET_KEY', secrets.token_hex(32))
app.json.sort_keys = False
app.config['STORAGE_ROOT'] = SETTINGS.storage_root
app.config['FETCH_TIMEOUT'] = SETTINGS.fetch_timeout
app.config['FETCH_USER_AGENT'] = SETTINGS.user_agent
app.config['RATELIMIT_ENABLED'] = SETTINGS.ratelimit_enabled

# Initialize extensions
compress = Compress(app)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[SETTINGS.rate_limit_default],
    storage_uri="memory://"
)
limiter.init_app(app)


def get_store() -> FilesystemStore:
    return FilesystemStore(current_app.config['STORAGE_ROOT'])


def _fetch(url: str) -> DownloadResult:
    return fetch_content(
        url,
        user_agent=current_app.config['FETCH_USER_AGENT'],
        timeout=current_app.config['FETCH_TIMEOUT'],
    )


def _bootstrap_storage(root: str) -> None:
    """Create the url/ directory up front; ingest re-checks it on every request."""
    result = FilesystemStore(root).ensure_dir(URL_ROOT)
    if result.ok:
        logger.info(f"Storage root: {os.path.abspath(root)}")
    else:
        logger.warning(f"Could not create {URL_ROOT}/ under {root}: {result.error}")


_bootstrap_storage(SETTINGS.storage_root)


def add_security_headers(response):
    """Add security headers"""
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['Content-Security-Policy'] = (
        "default-src 'self'; "
        "style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data:; "
        "script-src 'none'"
    )
    response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
    response.headers['Permissions-Policy'] = 'geolocation=(), microphone=(), camera=()'
    return response

app.after_request(add_security_headers)


# =====================
# Download form
# =====================

@app.route('/', methods=['GET', 'POST'])
@app.route('/downloader', methods=['GET', 'POST'])
@limiter.limit("60 per minute", methods=['POST'])
def downloader():
    """Show the download form; on POST with a url, ingest it"""
    result = None
    if request.method == 'POST':
        submission = Submission.from_form(request.form)
        if submission is not None:
            result = ingest_submission(submission, get_store(), fetch=_fetch)
            if result.failed_writes:
                logger.warning(f"{len(result.failed_writes)} write(s) failed for {result.key}")
    return render_template('downloader.html', result=result)


# =====================
# Direct uploads
# =====================


@app.route('/upload', methods=['GET', 'POST'])
@limiter.limit("30 per minute", methods=['POST'])
def upload():
    """Store an uploaded file or pasted text under its content hash"""
    result = None
    error = None
    if request.method == 'POST':
        try:
            item = Upload.from_form(request.form, request.files)
        except UploadRejected as e:
            error = str(e)
        else:
            result = ingest_upload(item, get_store())
    status = 400 if error else 200
    return render_template('upload.html', result=result, error=error), status


# =====================
# Metadata search
# =====================

@app.route('/search')
@app.route('/downloader_search')
def search_page():
    """Search stored metadata records by title"""
    try:
        outcome = run_search(get_store(), request.args)
    except StoreError as e:
        logger.error(f"Metadata search failed: {e}")
        return render_template('error.html',
                               error_title="Search Failed",
                               error_message="The metadata store could not be read."), 500
    return render_template('search.html',
                           outcome=outcome,
                           term=request.args.get('search', ''),
                           states=SearchState)


@app.route('/api/search')
@limiter.limit("30 per minute")
def search_api():
    """Search metadata API endpoint"""
    term = request.args.get('search', '')
    if not term:
        return jsonify({
            'success': False,
            'error': 'Search term is required',
            'data': []
        }), 400
    try:
        matches = search_metadata(get_store(), term)
    except StoreError as e:
        logger.error(f"Metadata search failed: {e}")
        return jsonify({
            'success': False,
            'error': 'Search failed',
            'message': str(e)
        }), 500
    return jsonify({
        'success': True,
        'query': term,
        'count': len(matches),
        'data': [m.to_dict() for m in matches],
        'timestamp': datetime.now(timezone.utc).isoformat()
    })


# =====================
# Stored files
# =====================

@app.route('/lookup')
def lookup():
    """Redirect a URL or content key to its stored URL record"""
    value = sanitize_input(request.args.get('search-input', ''))
    if not value:
        return redirect(url_for('search_page'))
    key = resolve_key(value)
    if not get_store().is_file(url_path(key)):
        return render_template('error.html',
                               error_title="Not Found",
                               error_message="No stored entry for that URL or key."), 404
    return redirect(url_for('stored_file', section=URL_ROOT, filename=f"{key}.txt"))


@app.route('/<any(%s):section>/<path:filename>' % ', '.join(STORAGE_ROOTS))
@limiter.exempt
def stored_file(section: str, filename: str):
    """Serve stored URL text, content and metadata files"""
    directory = os.path.join(os.path.abspath(current_app.config['STORAGE_ROOT']), section)
    return send_from_directory(directory, filename)


@app.route('/api/health')
@limiter.exempt
def health_check():
    """API health check endpoint"""
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.now().isoformat(),
        'version': APP_VERSION
    })


def _wants_json() -> bool:
    return request.path.startswith('/api/')


@app.errorhandler(404)
def not_found(error):
    """Custom 404 handler"""
    if _wants_json():
        return jsonify({'error': 'Endpoint not found'}), 404
    return render_template('error.html',
                           error_title="Not Found",
                           error_message="The requested page or file does not exist."), 404


@app.errorhandler(429)
def rate_limit_handler(error):
    """Custom rate limit handler"""
    return jsonify({
        'error': 'Rate limit exceeded',
        'message': 'Too many requests, please slow down',
        'retry_after': 60
    }), 429


@app.errorhandler(500)
def internal_error(error):
    """Custom 500 handler"""
    logger.error(f"Internal server error: {error}")
    if _wants_json():
        return jsonify({'error': 'Internal server error'}), 500
    return render_template('error.html',
                           error_title="Server Error",
                           error_message="Something went wrong."), 500


# Main execution block
if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5002))
    debug = os.environ.get('FLASK_ENV') == 'development'

    logger.info(f"Starting URL vault web interface on port {port}")
    logger.info(f"Debug mode: {debug}")

    app.run(
        host='0.0.0.0',
        port=port,
        debug=debug,
        threaded=True
    )
