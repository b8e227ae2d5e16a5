"""
Data model and parser for the Nextcloud serverinfo OCS document.

The document is returned by ``/ocs/v2.php/apps/serverinfo/api/v1/info?format=json``
and looks like::

    {"ocs": {"meta": {...}, "data": {"nextcloud": {...}, "server": {...},
                                     "activeUsers": {...}}}}

Parsing is all-or-nothing. Fields missing from the document read as zero (or
an empty string), the way a plain JSON decode into a struct would, but a field
of the wrong type fails the whole document.
"""
import json
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .exceptions import ParseError


@dataclass(frozen=True)
class Meta:
    status: str = ""
    status_code: int = 0
    message: str = ""


@dataclass(frozen=True)
class Apps:
    installed: int = 0
    available_updates: int = 0


@dataclass(frozen=True)
class System:
    version: str = ""
    free_space: int = 0
    apps: Apps = field(default_factory=Apps)


@dataclass(frozen=True)
class Storage:
    users: int = 0
    files: int = 0


@dataclass(frozen=True)
class Shares:
    shares_user: int = 0
    shares_groups: int = 0
    shares_link: int = 0
    shares_link_no_password: int = 0
    fed_sent: int = 0
    fed_received: int = 0


@dataclass(frozen=True)
class NextcloudInfo:
    system: System = field(default_factory=System)
    storage: Storage = field(default_factory=Storage)
    shares: Shares = field(default_factory=Shares)


@dataclass(frozen=True)
class OpCacheStats:
    hits: int = 0
    misses: int = 0
    cached_scripts: int = 0
    cached_keys: int = 0


@dataclass(frozen=True)
class OpCache:
    stats: OpCacheStats = field(default_factory=OpCacheStats)


@dataclass(frozen=True)
class APCuCache:
    hits: int = 0
    misses: int = 0
    inserts: int = 0
    entries: int = 0


@dataclass(frozen=True)
class APCu:
    cache: APCuCache = field(default_factory=APCuCache)


@dataclass(frozen=True)
class PHP:
    version: str = ""
    memory_limit: int = 0
    upload_max_filesize: int = 0
    opcache: OpCache = field(default_factory=OpCache)
    apcu: APCu = field(default_factory=APCu)


@dataclass(frozen=True)
class Database:
    type: str = ""
    version: str = ""
    size: int = 0


@dataclass(frozen=True)
class Server:
    php: PHP = field(default_factory=PHP)
    database: Database = field(default_factory=Database)


@dataclass(frozen=True)
class ActiveUsers:
    last_5_minutes: int = 0
    last_1_hour: int = 0
    last_24_hours: int = 0


@dataclass(frozen=True)
class Data:
    nextcloud: NextcloudInfo = field(default_factory=NextcloudInfo)
    server: Server = field(default_factory=Server)
    active_users: ActiveUsers = field(default_factory=ActiveUsers)


@dataclass(frozen=True)
class ServerInfo:
    """Snapshot of one serverinfo response."""
    meta: Meta = field(default_factory=Meta)
    data: Data = field(default_factory=Data)


def _section(obj: Dict[str, Any], key: str, path: str,
             required: bool = False) -> Dict[str, Any]:
    """Return a nested object.

    Nextcloud reports disabled components as ``false`` (OpCache) or leaves
    them out (APCu, apps when skipped); both read as an empty section.
    """
    value = obj.get(key)
    if value is None or value is False:
        if required:
            raise ParseError(f"missing object '{path}{key}'")
        return {}
    if isinstance(value, list) and not value:
        # PHP serialises empty associative arrays as []
        return {}
    if not isinstance(value, dict):
        raise ParseError(f"'{path}{key}' is not an object: {type(value).__name__}")
    return value


def _int(obj: Dict[str, Any], key: str, path: str) -> int:
    value = obj.get(key)
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ParseError(f"'{path}{key}' is not a number: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        # json accepts NaN, Infinity and overflowing literals like 1e400
        if not math.isfinite(value):
            raise ParseError(f"'{path}{key}' is not a finite number: {value!r}")
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise ParseError(f"'{path}{key}' is not a number: {value!r}") from None
    raise ParseError(f"'{path}{key}' is not a number: {type(value).__name__}")


def _str(obj: Dict[str, Any], key: str, path: str) -> str:
    value = obj.get(key)
    if value is None:
        return ""
    if isinstance(value, (dict, list, bool)):
        raise ParseError(f"'{path}{key}' is not a string: {type(value).__name__}")
    return str(value)


def _parse_nextcloud(obj: Dict[str, Any]) -> NextcloudInfo:
    p = "ocs.data.nextcloud."
    system = _section(obj, "system", p)
    apps = _section(system, "apps", p + "system.")
    storage = _section(obj, "storage", p)
    shares = _section(obj, "shares", p)

    sp = p + "shares."
    return NextcloudInfo(
        system=System(
            version=_str(system, "version", p + "system."),
            free_space=_int(system, "freespace", p + "system."),
            apps=Apps(
                installed=_int(apps, "num_installed", p + "system.apps."),
                available_updates=_int(apps, "num_updates_available", p + "system.apps."),
            ),
        ),
        storage=Storage(
            users=_int(storage, "num_users", p + "storage."),
            files=_int(storage, "num_files", p + "storage."),
        ),
        shares=Shares(
            shares_user=_int(shares, "num_shares_user", sp),
            shares_groups=_int(shares, "num_shares_groups", sp),
            shares_link=_int(shares, "num_shares_link", sp),
            shares_link_no_password=_int(shares, "num_shares_link_no_password", sp),
            fed_sent=_int(shares, "num_fed_shares_sent", sp),
            fed_received=_int(shares, "num_fed_shares_received", sp),
        ),
    )


def _parse_php(obj: Dict[str, Any]) -> PHP:
    p = "ocs.data.server.php."
    opcache = _section(obj, "opcache", p)
    opcache_stats = _section(opcache, "opcache_statistics", p + "opcache.")
    apcu = _section(obj, "apcu", p)
    apcu_cache = _section(apcu, "cache", p + "apcu.")

    op = p + "opcache.opcache_statistics."
    ap = p + "apcu.cache."
    return PHP(
        version=_str(obj, "version", p),
        memory_limit=_int(obj, "memory_limit", p),
        upload_max_filesize=_int(obj, "upload_max_filesize", p),
        opcache=OpCache(stats=OpCacheStats(
            hits=_int(opcache_stats, "hits", op),
            misses=_int(opcache_stats, "misses", op),
            cached_scripts=_int(opcache_stats, "num_cached_scripts", op),
            cached_keys=_int(opcache_stats, "num_cached_keys", op),
        )),
        apcu=APCu(cache=APCuCache(
            hits=_int(apcu_cache, "num_hits", ap),
            misses=_int(apcu_cache, "num_misses", ap),
            inserts=_int(apcu_cache, "num_inserts", ap),
            entries=_int(apcu_cache, "num_entries", ap),
        )),
    )


def _parse_server(obj: Dict[str, Any]) -> Server:
    p = "ocs.data.server."
    database = _section(obj, "database", p)
    return Server(
        php=_parse_php(_section(obj, "php", p)),
        database=Database(
            type=_str(database, "type", p + "database."),
            version=_str(database, "version", p + "database."),
            size=_int(database, "size", p + "database."),
        ),
    )


def from_dict(document: Dict[str, Any]) -> ServerInfo:
    """Build a ServerInfo from an already decoded JSON document."""
    if not isinstance(document, dict):
        raise ParseError(f"document is not an object: {type(document).__name__}")

    ocs = _section(document, "ocs", "", required=True)
    meta = _section(ocs, "meta", "ocs.")
    data = _section(ocs, "data", "ocs.", required=True)
    active = _section(data, "activeUsers", "ocs.data.")

    ap = "ocs.data.activeUsers."
    return ServerInfo(
        meta=Meta(
            status=_str(meta, "status", "ocs.meta."),
            status_code=_int(meta, "statuscode", "ocs.meta."),
            message=_str(meta, "message", "ocs.meta."),
        ),
        data=Data(
            nextcloud=_parse_nextcloud(_section(data, "nextcloud", "ocs.data.")),
            server=_parse_server(_section(data, "server", "ocs.data.")),
            active_users=ActiveUsers(
                last_5_minutes=_int(active, "last5minutes", ap),
                last_1_hour=_int(active, "last1hour", ap),
                last_24_hours=_int(active, "last24hours", ap),
            ),
        ),
    )


def parse_json(body: Union[str, bytes, bytearray, None]) -> ServerInfo:
    """Parse a serverinfo response body.

    Raises:
        ParseError: the body is not JSON or does not match the schema.
    """
    if not body:
        raise ParseError("empty response body")
    try:
        document: Optional[Any] = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise ParseError(f"invalid JSON: {e}") from e
    return from_dict(document)
