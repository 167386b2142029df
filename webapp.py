#!/usr/bin/env python3
"""
Flask Web UI for Role Risk Review
Upload a risk dataset and a role assignment file, review SoD and critical action exposure,
and review account status of user listings
"""

import io
import os
import logging
import threading
import uuid
from functools import wraps
from pathlib import Path
from datetime import datetime
from typing import Any, Dict, Optional

from flask import (
    Flask, render_template, request, redirect, url_for, send_file, flash, jsonify,
    session, g, abort
)
from werkzeug.utils import secure_filename

from core.accounts import AccountStore
from core.aggregation import paginate, summarize
from core.analyzer import RoleRiskAnalyzer
from core.dataset_store import DATASET_KINDS, RISK_DATASET, ROLE_FILE, DatasetStore
from core.errors import AccountError, AccountNotFoundError, RoleRiskError
from core.models import AnalysisResult, UserAnalytics
from core.permissions import PERMISSION_PATHS, UserSession
from core.user_analytics import UserAnalyzer
from utils.config import Config
from utils.csv_utils import CSV_EXTENSIONS, EXCEL_EXTENSIONS
from utils.report_export import (
    aggregates_to_dict, export_exposures_csv, export_user_report, export_workbook, page_to_dict,
    user_analytics_to_dict
)

ALLOWED_EXTENSIONS = {ext.lstrip('.') for ext in CSV_EXTENSIONS | EXCEL_EXTENSIONS}
DEFAULT_PAGE_SIZE = 10
JOBS_KEY = 'analysis_jobs'
DATASET_LABELS = {RISK_DATASET: 'risk dataset', ROLE_FILE: 'role assignment file'}


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed for uploads"""
    if '.' not in filename:
        return False
    return filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def setup_logging(level: str = "INFO"):
    """Setup logging for the web application"""
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = log_dir / f"webapp_{timestamp}.log"

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_filename),
            logging.StreamHandler()
        ]
    )


def _wants_json() -> bool:
    return request.path.startswith('/api/') or request.path.startswith('/users')


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if g.user_session is None:
            if _wants_json():
                return jsonify({'error': 'Authentication required'}), 401
            return redirect(url_for('login', next=request.path))
        return view(*args, **kwargs)
    return wrapped


def permission_required(path: str):
    """Allow the view only when the session may open the given menu path"""
    def decorator(view):
        @wraps(view)
        @login_required
        def wrapped(*args, **kwargs):
            if not g.user_session.can_access(path):
                abort(403)
            return view(*args, **kwargs)
        return wrapped
    return decorator


def admin_required(view):
    @wraps(view)
    @login_required
    def wrapped(*args, **kwargs):
        if not g.user_session.is_admin:
            return jsonify({'error': 'Administrator access required'}), 403
        return view(*args, **kwargs)
    return wrapped

def create_app(config: Optional[Config] = None, account_store: Optional[AccountStore] = None,
               test_config: Optional[Dict[str, Any]] = None) -> Flask:
    """Build the Flask application"""
    config = config or Config()

    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=config.secret_key or 'your-secret-key-change-this',
        MAX_CONTENT_LENGTH=config.max_upload_size * 2,
        UPLOAD_FOLDER=config.upload_folder,
        OUTPUT_FOLDER=config.output_folder,
        DATASET_FOLDER=config.dataset_folder,
        MAX_ANALYSIS_ROWS=config.max_analysis_rows,
        MAX_JOBS=config.max_jobs,
    )
    if test_config:
        app.config.update(test_config)

    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)
    os.makedirs(app.config['OUTPUT_FOLDER'], exist_ok=True)

    store = account_store or AccountStore(config.accounts_file)
    datasets = DatasetStore(app.config['DATASET_FOLDER'])
    app.extensions['account_store'] = store
    app.extensions['dataset_store'] = datasets
    # Insertion ordered, so the first key is the oldest job
    app.extensions[JOBS_KEY] = {}
    jobs_lock = threading.Lock()

    def store_job(job_id: str, result: Any) -> None:
        with jobs_lock:
            jobs = app.extensions[JOBS_KEY]
            jobs[job_id] = result
            while len(jobs) > max(app.config['MAX_JOBS'], 1):
                evicted = next(iter(jobs))
                del jobs[evicted]
                app.logger.info(f"Evicted analysis job {evicted}")

    def get_job(job_id: str, result_type: type):
        with jobs_lock:
            result = app.extensions[JOBS_KEY].get(job_id)
        if not isinstance(result, result_type):
            abort(404)
        return result

    def save_upload(upload, job_id: str, kind: str) -> str:
        path = os.path.join(app.config['UPLOAD_FOLDER'], f"{job_id}_{kind}_{secure_filename(upload.filename)}")
        upload.save(path)
        return path

    def send_export(job_id: str, filename: str, write) -> Any:
        """Write an export to the output folder, send it from memory and remove the file"""
        output_path = os.path.abspath(os.path.join(app.config['OUTPUT_FOLDER'], f"{job_id}_{filename}"))
        try:
            write(output_path)
            with open(output_path, 'rb') as file:
                buffer = io.BytesIO(file.read())
        finally:
            if os.path.exists(output_path):
                os.remove(output_path)
        return send_file(buffer, as_attachment=True, download_name=filename)

    @app.before_request
    def load_user_session():
        data = session.get('user')
        g.user_session = UserSession.from_dict(data) if data else None

    @app.context_processor
    def inject_menu():
        user_session = g.get('user_session')
        served = {rule.rule for rule in app.url_map.iter_rules()}
        return {
            'user_session': user_session,
            'menu': user_session.visible_menu(served) if user_session else [],
        }

    @app.route('/login', methods=['GET', 'POST'])
    def login():
        """Login form and credential check"""
        if request.method == 'POST':
            username = request.form.get('username', '').strip()
            password = request.form.get('password', '')
            user_session = store.authenticate(username, password)
            if user_session is None:
                flash('Invalid username or password', 'error')
                return render_template('login.html'), 401

            session.clear()
            session['user'] = user_session.to_dict()
            next_path = request.args.get('next', '')
            if not next_path.startswith('/') or next_path.startswith('//'):
                next_path = url_for('index')
            return redirect(next_path)

        return render_template('login.html')

    @app.route('/logout')
    def logout():
        session.clear()
        return redirect(url_for('login'))

    @app.route('/')
    @login_required
    def index():
        """Landing page with the permitted menu"""
        return render_template('index.html')

    @app.route('/dashboard')
    @permission_required('/dashboard')
    def dashboard():
        """Welcome page with quick actions and, for admins, the permission overview"""
        permissions = g.user_session.permissions
        return render_template('dashboard.html',
                               permission_flags=[(flag, getattr(permissions, flag)) for flag in PERMISSION_PATHS])

    @app.route('/role-analysis', methods=['GET'])
    @permission_required('/role-analysis')
    def role_analysis_form():
        return render_template('role_analysis.html', datasets=datasets.info())

    @app.route('/role-analysis', methods=['POST'])
    @permission_required('/role-analysis')
    def upload_files():
        """Run the analysis on uploaded files, falling back to the saved datasets"""
        uploads = {}
        paths = {}
        for kind, field_name in ((RISK_DATASET, 'risk_file'), (ROLE_FILE, 'role_file')):
            upload = request.files.get(field_name)
            if upload and upload.filename:
                if not allowed_file(upload.filename):
                    flash(f'Invalid file type for {upload.filename}. Allowed types: '
                          f'{", ".join(sorted(ALLOWED_EXTENSIONS))}', 'error')
                    return redirect(url_for('role_analysis_form'))
                uploads[kind] = upload
            else:
                paths[kind] = datasets.path(kind)
                if paths[kind] is None:
                    flash(f"The {DATASET_LABELS[kind]} is required: upload one or save one for reuse", "error")
                    return redirect(url_for("role_analysis_form"))

        job_id = str(uuid.uuid4())
        saved_uploads = []

        try:
            for kind, upload in uploads.items():
                paths[kind] = save_upload(upload, job_id, kind)
                saved_uploads.append(paths[kind])

            app.logger.info(f"Starting role analysis job {job_id} for {g.user_session.username}")
            analyzer = RoleRiskAnalyzer(max_rows=app.config['MAX_ANALYSIS_ROWS'])
            result = analyzer.analyze_files(paths[RISK_DATASET], paths[ROLE_FILE])

            for kind, upload in uploads.items():
                if request.form.get(f'save_{kind}'):
                    datasets.save(kind, paths[kind], secure_filename(upload.filename), g.user_session.username)

        except RoleRiskError as e:
            app.logger.error(f"Role analysis job {job_id} failed: {e}")
            flash(f'Processing failed: {e}', 'error')
            return redirect(url_for('role_analysis_form'))

        finally:
            for path in saved_uploads:
                if os.path.exists(path):
                    os.remove(path)

        store_job(job_id, result)
        app.logger.info(f"Role analysis job {job_id} completed: {len(result.exposures)} exposures")
        return redirect(url_for('role_analysis_results', job_id=job_id))

    def _role_view(result: AnalysisResult):
        """Role filter, current page and the aggregates of the filtered exposures"""
        role = request.args.get('role') or None
        page = request.args.get('page', 1, type=int)
        page_size = request.args.get('page_size', DEFAULT_PAGE_SIZE, type=int)
        if page_size is None or page_size < 1:
            page_size = DEFAULT_PAGE_SIZE

        aggregates = result.aggregates
        if role is not None:
            filtered = [exposure for exposure in result.exposures if exposure.role == role]
            aggregates = summarize(filtered, result.role_index, result.graph)

        return role, paginate(result.exposures, role=role, page=page or 1, page_size=page_size), aggregates

    @app.route('/role-analysis/<job_id>')
    @permission_required('/role-analysis')
    def role_analysis_results(job_id):
        """Dashboard metrics and the paginated exposure table"""
        result = get_job(job_id, AnalysisResult)
        role, page, aggregates = _role_view(result)
        return render_template('results.html',
                               job_id=job_id,
                               result=result,
                               aggregates=aggregates,
                               page=page,
                               selected_role=role)

    @app.route('/api/role-analysis/<job_id>')
    @permission_required('/role-analysis')
    def role_analysis_api(job_id):
        result = get_job(job_id, AnalysisResult)
        role, page, aggregates = _role_view(result)
        return jsonify({
            'job_id': job_id,
            'role': role,
            'roles': result.roles,
            'summary': aggregates_to_dict(aggregates),
            'exposures': page_to_dict(page),
        })

    @app.route('/role-analysis/<job_id>/export.<fmt>')
    @permission_required('/role-analysis')
    def download_export(job_id, fmt):
        """Download exposures as CSV or the full report as an Excel workbook"""
        result = get_job(job_id, AnalysisResult)

        if fmt == 'csv':
            return send_export(job_id, 'role_risks.csv',
                               lambda path: export_exposures_csv(result.exposures, path))
        if fmt == 'xlsx':
            return send_export(job_id, 'role_risks.xlsx', lambda path: export_workbook(result, path))
        abort(404)

    @app.route('/api/datasets', methods=['GET'])
    @permission_required('/role-analysis')
    def dataset_info():
        return jsonify(datasets.info())

    @app.route('/api/datasets/<kind>', methods=['DELETE'])
    @permission_required('/role-analysis')
    def clear_dataset(kind):
        if kind not in DATASET_KINDS or not datasets.clear(kind):
            return jsonify({'error': f'No saved {kind} dataset'}), 404
        return '', 204

    @app.route('/user-analysis', methods=['GET'])
    @permission_required('/user-analysis')
    def user_analysis_form():
        return render_template('user_analysis.html')

    @app.route('/user-analysis', methods=['POST'])
    @permission_required('/user-analysis')
    def upload_user_listing():
        """Handle upload of a user listing and build its account status dashboard"""
        upload = request.files.get('user_file')
        if not upload or not upload.filename:
            flash('A user listing file is required', 'error')
            return redirect(url_for('user_analysis_form'))
        if not allowed_file(upload.filename):
            flash(f'Invalid file type for {upload.filename}. Allowed types: '
                  f'{", ".join(sorted(ALLOWED_EXTENSIONS))}', 'error')
            return redirect(url_for('user_analysis_form'))

        job_id = str(uuid.uuid4())
        path = None
        try:
            path = save_upload(upload, job_id, 'users')
            app.logger.info(f"Starting user analysis job {job_id} for {g.user_session.username}")
            analytics = UserAnalyzer(max_rows=app.config['MAX_ANALYSIS_ROWS']).analyze_file(path)

        except RoleRiskError as e:
            app.logger.error(f"User analysis job {job_id} failed: {e}")
            flash(f'Processing failed: {e}', 'error')
            return redirect(url_for('user_analysis_form'))

        finally:
            if path and os.path.exists(path):
                os.remove(path)

        store_job(job_id, analytics)
        app.logger.info(f"User analysis job {job_id} completed: {analytics.total_users} users")
        return redirect(url_for('user_analysis_results', job_id=job_id))

    @app.route('/user-analysis/<job_id>')
    @permission_required('/user-analysis')
    def user_analysis_results(job_id):
        analytics = get_job(job_id, UserAnalytics)
        return render_template('user_results.html', job_id=job_id, analytics=analytics)

    @app.route('/api/user-analysis/<job_id>')
    @permission_required('/user-analysis')
    def user_analysis_api(job_id):
        analytics = get_job(job_id, UserAnalytics)
        return jsonify({'job_id': job_id, 'summary': user_analytics_to_dict(analytics)})

    @app.route('/user-analysis/<job_id>/export.json')
    @permission_required('/user-analysis')
    def download_user_report(job_id):
        analytics = get_job(job_id, UserAnalytics)
        return send_export(job_id, 'user_analysis_report.json',
                           lambda path: export_user_report(analytics, path))

    @app.route('/users', methods=['GET'])
    @admin_required
    def list_users():
        return jsonify(store.list_users())

    @app.route('/users', methods=['POST'])
    @admin_required
    def create_user():
        data = request.get_json(silent=True) or {}
        try:
            user = store.create_user(
                username=data.get('username', ''),
                email=data.get('email', ''),
                password=data.get('password', ''),
                role=data.get('role', 'user'),
                permissions=data.get('permissions')
            )
        except AccountError as e:
            return jsonify({'error': str(e)}), 400
        return jsonify(user), 201

    @app.route('/users/<int:user_id>', methods=['PUT'])
    @admin_required
    def update_user(user_id):
        data = request.get_json(silent=True) or {}
        try:
            user = store.update_user(user_id, data)
        except AccountNotFoundError as e:
            return jsonify({'error': str(e)}), 404
        except AccountError as e:
            return jsonify({'error': str(e)}), 400
        return jsonify(user)

    @app.route('/users/<int:user_id>', methods=['DELETE'])
    @admin_required
    def delete_user(user_id):
        try:
            store.delete_user(user_id)
        except AccountNotFoundError as e:
            return jsonify({'error': str(e)}), 404
        return '', 204

    @app.errorhandler(413)
    def upload_too_large(error):
        flash(f'File too large. Maximum size: {config.max_upload_size // (1024 * 1024)}MB', 'error')
        return redirect(request.path if request.path in ('/role-analysis', '/user-analysis')
                        else url_for('index'))

    @app.route('/health')
    def health_check():
        """Health check endpoint"""
        config_valid = config.validate()
        with jobs_lock:
            job_count = len(app.extensions[JOBS_KEY])

        return jsonify({
            'status': 'healthy' if config_valid else 'configuration_error',
            'config_valid': config_valid,
            'missing_config': config.get_missing_vars(),
            'analysis_jobs': job_count
        })

    return app


if __name__ == '__main__':
    config = Config()
    setup_logging(config.log_level)
    app = create_app(config)

    if not config.validate():
        missing_vars = config.get_missing_vars()
        app.logger.warning(f"Missing configuration: {', '.join(missing_vars)}")
        print("⚠️  Warning: Missing configuration variables. Sessions use an insecure default key.")
        print(f"   Missing: {', '.join(missing_vars)}")
    else:
        app.logger.info("Configuration validated successfully")

    print(f"🚀 Starting Role Risk Review Web UI on port {config.port}")
    print(f"📁 Upload folder: {config.upload_folder}")
    print(f"📁 Download folder: {config.output_folder}")
    print(f"🔧 Debug mode: {config.debug}")

    app.run(host='0.0.0.0', port=config.port, debug=config.debug)
