"""
Core application for Historarr.
Coordinates the service clients and the history engine, and provides API methods.
"""

from typing import Dict, Any, List, Optional
from datetime import datetime, timezone
import threading
import time

from .config import Config, ServiceInstance
from .logger import Logger
from .clients import APIError, BaseClient, CLIENT_CLASSES
from .history import (
    EventRecord, HistoryGroup, normalize_record, group_history,
    detect_lifecycle_stages, create_activity_summary, create_service_summary,
    create_status_summary, extract_status_options, extract_instance_options,
    filter_history, get_display_title, get_indexer_details, status_badge,
    group_by_day, format_compact_relative_time, build_external_link, get_source_client,
)


class HistorarrCore:
    """
    Core application coordinator.

    RESPONSIBILITIES:
        - Manages connections to Sonarr, Radarr, Prowlarr, Lidarr and Readarr instances
        - Fetches and caches the history feed of every enabled instance
        - Builds grouped, summarized history views for the web API

    DATA FLOW:
        1. Each instance's history is paged in and normalized to EventRecords
        2. A failing instance is logged and contributes nothing; others carry on
        3. Records are filtered, grouped into download lifecycles and summarized
        4. Web UI polls the JSON views via API endpoints
    """

    def __init__(self, config: Config, logger: Logger):
        self.config = config
        self.logger = logger
        self.log = logger.get_logger('core')
        # --debug on the command line stays on whatever the config file says
        self._debug_flag = logger.debug

        # API Clients per service, keyed by instance id
        # Example: {'sonarr': {'main': SonarrClient(...), '4k': SonarrClient(...)}}
        self.clients: Dict[str, Dict[str, BaseClient]] = {s: {} for s in Config.SERVICES}
        self.instances: Dict[str, ServiceInstance] = {}

        # History cache
        self._cache_lock = threading.Lock()
        self._history_cache: Optional[Dict[str, Any]] = None
        self._history_cache_time: Optional[float] = None
        self._history_cache_range = (None, None)

        # Initialize if configured
        if config.is_configured():
            self.reinit_clients()

    def reinit_clients(self):
        """Initialize or reinitialize API clients."""
        self.logger.set_debug(self._debug_flag or self.config.debug_mode)

        for clients in self.clients.values():
            clients.clear()
        self.instances.clear()

        for service in Config.SERVICES:
            client_class = CLIENT_CLASSES[service]
            for inst in self.config.get_enabled(service):
                self.clients[service][inst.id] = client_class(inst.url, inst.api_key, inst.name)
                self.instances[inst.id] = inst
                self.log.info(f"Initialized {service.capitalize()}: {inst.name}")

        self.invalidate_cache()

    # ==================== Fetching ====================

    def _fetch_instance(self, service: str, instance_id: str, client: BaseClient,
                        start_date: Optional[str], end_date: Optional[str]) -> List[EventRecord]:
        settings = self.config.history
        raw_records = client.get_all_history(
            page_size=settings.page_size,
            max_pages=settings.max_pages,
            since=start_date,
            until=end_date,
        )

        records = []
        skipped = 0
        for raw in raw_records:
            try:
                records.append(normalize_record(raw, service, instance_id, client.name))
            except ValueError as e:
                skipped += 1
                self.log.debug(f"Skipping malformed {service} record from {client.name}: {e}")
        if skipped:
            self.log.warning(f"Skipped {skipped} malformed history records from {client.name}")
        return records

    def fetch_history(self, start_date: Optional[str] = None,
                      end_date: Optional[str] = None) -> Dict[str, Any]:
        """Fetch history from every enabled instance.

        Returns:
            {'instances': [per-instance info], 'aggregated': [EventRecord], 'total_count': int}
        """
        instances = []
        aggregated: List[EventRecord] = []

        for service in Config.SERVICES:
            for instance_id, client in self.clients[service].items():
                entry = {
                    'instance_id': instance_id,
                    'instance_name': client.name,
                    'service': service,
                    'total_records': 0,
                    'error': None,
                }
                try:
                    records = self._fetch_instance(service, instance_id, client, start_date, end_date)
                    entry['total_records'] = len(records)
                    aggregated.extend(records)
                    self.log.debug(f"Fetched {len(records)} history records from {client.name}")
                except APIError as e:
                    entry['error'] = str(e)
                    self.log.error(f"History fetch failed for {service} '{client.name}': {e}")
                instances.append(entry)

        aggregated.sort(key=lambda record: record.timestamp, reverse=True)
        return {
            'instances': instances,
            'aggregated': aggregated,
            'total_count': len(aggregated),
        }

    def get_history(self, force: bool = False, start_date: Optional[str] = None,
                    end_date: Optional[str] = None) -> Dict[str, Any]:
        """Cached fetch_history; refetches when stale, forced or the range changes."""
        ttl = self.config.history.cache_ttl_seconds
        with self._cache_lock:
            fresh = (
                not force
                and self._history_cache is not None
                and self._history_cache_range == (start_date, end_date)
                and time.time() - self._history_cache_time < ttl
            )
            if fresh:
                return self._history_cache

            history = self.fetch_history(start_date, end_date)
            self._history_cache = history
            self._history_cache_time = time.time()
            self._history_cache_range = (start_date, end_date)
            return history

    def invalidate_cache(self):
        with self._cache_lock:
            self._history_cache = None
            self._history_cache_time = None

    def refresh_history(self) -> Dict[str, Any]:
        """Force a refetch of all instances."""
        history = self.get_history(force=True)
        failed = [i['instance_name'] for i in history['instances'] if i['error']]
        self.log.info(f"🔄 History refreshed: {history['total_count']} records"
                      + (f", failed: {', '.join(failed)}" if failed else ""))
        return {
            'success': not failed,
            'total_count': history['total_count'],
            'failed_instances': failed,
        }

    # ==================== Views ====================

    def _instance_url(self, record: EventRecord) -> Optional[str]:
        client = self.clients.get(record.service, {}).get(record.instance_id)
        return client.base_url if client else None

    def _item_to_dict(self, item: EventRecord, now: datetime) -> Dict[str, Any]:
        source_client, source_kind = get_source_client(item)
        data = item.to_dict()
        data.update({
            'link': build_external_link(item, self._instance_url(item)),
            'source_client': source_client,
            'source_kind': source_kind,
            'display_title': get_display_title(item),
            'relative_time': format_compact_relative_time(item.date, now),
            'badge': status_badge(item.kind),
            'details': get_indexer_details(item),
        })
        return data

    def _group_to_dict(self, group: HistoryGroup, now: datetime) -> Dict[str, Any]:
        lead = group.lead
        source_client, source_kind = get_source_client(lead)
        return {
            'download_id': group.download_id,
            'title': get_display_title(lead),
            'service': lead.service,
            'instance_id': lead.instance_id,
            'instance_name': lead.instance_name,
            'quality': lead.quality_name,
            'custom_formats': lead.custom_formats or [],
            'custom_format_score': lead.custom_format_score,
            'link': build_external_link(lead, self._instance_url(lead)),
            'source_client': source_client,
            'source_kind': source_kind,
            'latest': group.latest.isoformat(),
            'relative_time': format_compact_relative_time(lead.date, now),
            'badge': status_badge(lead.kind),
            'stages': [stage.to_dict() for stage in detect_lifecycle_stages(group.items)],
            'items': [self._item_to_dict(item, now) for item in group.items],
        }

    def build_history_view(self, records: List[EventRecord], service: str = "all",
                           instance: str = "all", status: str = "all", search: str = "",
                           group_by_download: Optional[bool] = None,
                           now: Optional[datetime] = None) -> Dict[str, Any]:
        """Filter, group and summarize records into the dashboard payload."""
        settings = self.config.history
        now = now or datetime.now(timezone.utc)
        if group_by_download is None:
            group_by_download = settings.group_by_download

        filtered = filter_history(records, service=service, instance=instance,
                                  status=status, search=search)
        groups = group_history(filtered, group_by_download, settings)
        days = group_by_day(groups, now)
        activity = create_activity_summary(records, now=now,
                                           window_hours=settings.activity_window_hours)

        return {
            'groups': [self._group_to_dict(group, now) for group in groups],
            'days': [
                {'date': day.day.isoformat(), 'label': day.label, 'count': len(day.groups)}
                for day in days
            ],
            'grouped': group_by_download,
            'total_count': len(records),
            'filtered_count': len(filtered),
            'summary': {
                'activity': activity.to_dict(),
                'services': create_service_summary(records),
                'statuses': [
                    {'label': label, 'count': count}
                    for label, count in create_status_summary(filtered)
                ],
            },
            'filters': {
                'instances': extract_instance_options(records),
                'statuses': extract_status_options(records),
            },
        }

    def get_history_view(self, service: str = "all", instance: str = "all",
                         status: str = "all", search: str = "",
                         group_by_download: Optional[bool] = None,
                         start_date: Optional[str] = None, end_date: Optional[str] = None,
                         now: Optional[datetime] = None) -> Dict[str, Any]:
        """Grouped history across all instances."""
        history = self.get_history(start_date=start_date, end_date=end_date)
        view = self.build_history_view(history['aggregated'], service=service, instance=instance,
                                       status=status, search=search,
                                       group_by_download=group_by_download, now=now)
        view['instances'] = history['instances']
        return view

    def get_history_summary(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Dashboard cards: activity in the trailing window plus per-service counts."""
        history = self.get_history()
        records = history['aggregated']
        activity = create_activity_summary(records, now=now,
                                           window_hours=self.config.history.activity_window_hours)
        return {
            'activity': activity.to_dict(),
            'window_hours': self.config.history.activity_window_hours,
            'services': create_service_summary(records),
            'total_count': history['total_count'],
        }

    def get_item_history(self, service: str, instance_id: str, item_id: int,
                         now: Optional[datetime] = None) -> Dict[str, Any]:
        """Lifecycle of a single episode (Sonarr) or movie (Radarr)."""
        client = self.clients.get(service, {}).get(instance_id)
        if client is None:
            return {'success': False, 'message': f'Unknown {service} instance: {instance_id}'}

        try:
            if service == 'sonarr':
                raw_records = client.get_episode_history(item_id)
            elif service == 'radarr':
                raw_records = client.get_movie_history(item_id)
            else:
                return {'success': False, 'message': f'{service} has no item history'}
        except APIError as e:
            self.log.error(f"Item history failed for {service} '{client.name}' #{item_id}: {e}")
            return {'success': False, 'message': str(e)}

        records = [normalize_record(raw, service, instance_id, client.name)
                   for raw in raw_records if isinstance(raw, dict)]
        view = self.build_history_view(records, group_by_download=True, now=now)
        view['success'] = True
        return view

    # ==================== Status ====================

    def get_status(self) -> Dict[str, Any]:
        """Get overall system status."""
        services = {}
        for service, clients in self.clients.items():
            for instance_id, client in clients.items():
                result = client.test_connection()
                services[f"{service}_{instance_id}"] = {
                    'name': client.name,
                    'type': service,
                    'connected': result['success'],
                    'message': result['message'],
                    'avg_response_ms': round(client.get_avg_response_ms()),
                }

        with self._cache_lock:
            cache_age = (time.time() - self._history_cache_time
                         if self._history_cache_time is not None else None)

        return {
            'app_name': self.config.app_name,
            'configured': self.config.is_configured(),
            'services': services,
            'history_cache_age_seconds': round(cache_age) if cache_age is not None else None,
        }

    def get_logs(self, level: Optional[str], limit: int,
                 source: Optional[str] = None) -> Dict[str, Any]:
        """Get application logs."""
        logs = Logger.get_logs(level, limit, source)
        return {'logs': logs}

    def test_service(self, service: str, data: Dict) -> Dict[str, Any]:
        """Test connection to a service."""
        url = data.get('url', '')
        api_key = data.get('api_key', '')

        if not url or not api_key:
            return {'success': False, 'message': 'URL and API key required'}

        client_class = CLIENT_CLASSES.get(service)
        if client_class is None:
            return {'success': False, 'message': 'Unknown service'}

        return client_class(url, api_key).test_connection()
