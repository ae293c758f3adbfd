"""
Web server for Historarr.
JSON API over the grouped history of every configured instance.
"""

from flask import Flask, jsonify, request

from .. import __version__, __app_name__


def _parse_bool(value, default=None):
    if value is None:
        return default
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


class WebServer:
    """Flask web server."""

    def __init__(self, app_core):
        self.core = app_core
        self.config = app_core.config
        self.log = app_core.logger.get_logger('web')

        self.app = Flask(__name__)

        self._register_routes()
        self._register_api()

    def _register_routes(self):
        """Register page routes."""

        @self.app.route('/')
        def index():
            return jsonify({
                'name': __app_name__,
                'version': __version__,
                'configured': self.config.is_configured(),
            })

    def _register_api(self):
        """Register API endpoints."""

        # ============ Status ============
        @self.app.route('/api/status')
        def api_status():
            return jsonify(self.core.get_status())

        # ============ Config ============
        @self.app.route('/api/config', methods=['GET'])
        def api_get_config():
            return jsonify(self.config.to_dict())

        @self.app.route('/api/config', methods=['POST'])
        def api_save_config():
            data = request.get_json(silent=True) or {}
            try:
                self.config.update(data)
                self.core.reinit_clients()
                return jsonify({'success': True})
            except (TypeError, ValueError, OSError) as e:
                self.log.error(f"Config update failed: {e}")
                return jsonify({'success': False, 'message': str(e)})

        @self.app.route('/api/test/<service>', methods=['POST'])
        def api_test_service(service):
            data = request.get_json(silent=True) or {}
            return jsonify(self.core.test_service(service, data))

        # ============ History ============
        @self.app.route('/api/history')
        def api_history():
            args = request.args
            return jsonify(self.core.get_history_view(
                service=args.get('service', 'all'),
                instance=args.get('instance', 'all'),
                status=args.get('status', 'all'),
                search=args.get('search', ''),
                group_by_download=_parse_bool(args.get('group')),
                start_date=args.get('start_date') or None,
                end_date=args.get('end_date') or None,
            ))

        @self.app.route('/api/history/summary')
        def api_history_summary():
            return jsonify(self.core.get_history_summary())

        @self.app.route('/api/history/refresh', methods=['POST'])
        def api_history_refresh():
            return jsonify(self.core.refresh_history())

        @self.app.route('/api/history/<service>/<instance_id>/<int:item_id>')
        def api_item_history(service, instance_id, item_id):
            return jsonify(self.core.get_item_history(service, instance_id, item_id))

        # ============ Logs ============
        @self.app.route('/api/logs')
        def api_logs():
            level = request.args.get('level')
            limit = request.args.get('limit', 200, type=int)
            source = request.args.get('source')
            return jsonify(self.core.get_logs(level, limit, source))

    def run(self, host: str = '0.0.0.0', port: int = 8080, debug: bool = False):
        """Start the server."""
        self.log.info(f"Starting web server on {host}:{port}")
        self.app.run(host=host, port=port, debug=debug, threaded=True)
