from flask import Flask
from flask_sqlalchemy import SQLAlchemy
import os
from asset_compliance.logger import get_logger

# Initialize extensions
db = SQLAlchemy()


def _env_flag(name, default='False'):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def create_app(test_config=None):
    from pathlib import Path

    app = Flask(__name__)

    logger = get_logger("asset_compliance")
    logger.info("Initializing Flask application")

    # Prefer an explicit DATABASE_URL; otherwise keep the SQLite database in the
    # project's instance/ directory so path resolution is reliable.
    db_env = os.environ.get('DATABASE_URL')
    if db_env:
        app.config['SQLALCHEMY_DATABASE_URI'] = db_env
    else:
        base_dir = Path(__file__).parent.parent
        instance_dir = base_dir / 'instance'
        instance_dir.mkdir(parents=True, exist_ok=True)
        default_db_path = instance_dir / 'asset_compliance.db'
        app.config['SQLALCHEMY_DATABASE_URI'] = f"sqlite:///{str(default_db_path.resolve())}"

    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # Cache configuration
    # REDIS_URL: when set, the cache store is a redis client (default backend: redis)
    # CACHE_BACKEND: redis | memory | none
    # CACHE_TTL_SECONDS: lifetime of every cache entry (default: 2 hours)
    app.config['REDIS_URL'] = os.environ.get('REDIS_URL')
    app.config['CACHE_BACKEND'] = os.environ.get(
        'CACHE_BACKEND', 'redis' if app.config['REDIS_URL'] else 'none'
    ).lower()
    app.config['CACHE_TTL_SECONDS'] = int(os.environ.get('CACHE_TTL_SECONDS', '7200'))
    app.config['REDIS_SOCKET_TIMEOUT'] = float(os.environ.get('REDIS_SOCKET_TIMEOUT', '5'))

    # Compliance thresholds
    app.config['UPCOMING_WINDOW_DAYS'] = int(os.environ.get('UPCOMING_WINDOW_DAYS', '30'))
    app.config['DEFAULT_SERVICE_INTERVAL_KM'] = int(os.environ.get('DEFAULT_SERVICE_INTERVAL_KM', '10000'))

    app.config['TESTING'] = _env_flag('TESTING')

    if test_config:
        app.config.update(test_config)

    db.init_app(app)
    logger.debug("Database configured")

    app.extensions['cache_store'] = _build_cache_store(app)

    # Import models so they are registered with SQLAlchemy
    from asset_compliance.data import equipment, plant  # noqa: F401

    logger.debug("Models registered")
    return app


def _build_cache_store(app):
    """
    Build the process-wide cache store for this application.

    The application owns the store's lifecycle; the compliance core only
    receives it through app.extensions['cache_store'].
    """
    from asset_compliance.data.cache_store import InMemoryCacheStore, RedisCacheStore

    logger = get_logger("asset_compliance.cache")
    backend = app.config['CACHE_BACKEND']

    if backend == 'redis':
        if not app.config['REDIS_URL']:
            logger.warning("CACHE_BACKEND=redis but REDIS_URL is not set - running uncached")
            return None
        import redis
        client = redis.Redis.from_url(
            app.config['REDIS_URL'],
            decode_responses=True,
            socket_timeout=app.config['REDIS_SOCKET_TIMEOUT'],
            retry_on_timeout=True,
        )
        logger.info("Cache store: redis")
        return RedisCacheStore(client)

    if backend == 'memory':
        logger.info("Cache store: in-memory")
        return InMemoryCacheStore()

    if backend != 'none':
        logger.warning(f"Unknown CACHE_BACKEND '{backend}' - running uncached")
    else:
        logger.info("Cache store disabled - running uncached")
    return None
