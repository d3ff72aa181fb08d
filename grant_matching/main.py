"""Match cache maintenance service with APScheduler.

- Sweeps expired grant_match_cache rows on an interval (default 60 minutes)
- ``--once`` runs a single sweep and exits
- ``build_pipeline`` wires the discovery pipeline from the same configuration
"""

import asyncio
import logging
import sys

from .cache import MatchCache, run_cleanup, start_cleanup_scheduler
from .config import Settings, load_config
from .database import SupabaseMatchStore
from .discovery import DiscoveryPipeline, HttpEnricher
from .scorer import load_weights

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)


def build_cache(config: Settings) -> MatchCache:
    store = SupabaseMatchStore(config.supabase_url, config.supabase_key)
    return MatchCache(store, ttl_days=config.match_cache_ttl_days)


def build_pipeline(config: Settings, cache: MatchCache = None) -> DiscoveryPipeline:
    """Create a DiscoveryPipeline from configuration.

    The enricher is only attached when ``enrichment_url`` is set; without it
    the pipeline returns deterministic-only results.
    """
    enricher = None
    if config.enrichment_url:
        enricher = HttpEnricher(config.enrichment_url, api_key=config.enrichment_api_key)

    return DiscoveryPipeline(
        cache=cache if cache is not None else build_cache(config),
        enricher=enricher,
        settings=config,
        weights=load_weights(config.scoring_weights_path),
    )


def run_once() -> int:
    """Run one cache sweep (for cron and manual execution)."""
    config = load_config()
    logging.getLogger().setLevel(config.log_level)
    return run_cleanup(build_cache(config))


async def serve():
    """Start the cleanup scheduler and keep running until cancelled."""
    config = load_config()

    # Configure logging level
    logging.getLogger().setLevel(config.log_level)

    logger.info("Initializing match cache service")
    logger.info("Cleanup interval: %d minutes", config.cleanup_interval_minutes)

    cache = build_cache(config)
    scheduler = start_cleanup_scheduler(cache, config.cleanup_interval_minutes)

    # Run first sweep immediately
    run_cleanup(cache)

    try:
        await asyncio.Event().wait()
    finally:
        logger.info("Shutting down scheduler...")
        scheduler.shutdown()
        logger.info("Scheduler stopped")


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if "--once" in argv:
        run_once()
        return
    try:
        asyncio.run(serve())
    except (KeyboardInterrupt, SystemExit):
        pass


if __name__ == "__main__":
    main()
