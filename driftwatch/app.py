import os
import logging
from typing import Optional
from contextlib import asynccontextmanager
from fastapi import FastAPI
from driftwatch import __version__
from driftwatch.core.migrations.errors import ConfigurationError
from driftwatch.core.migrations.report_formatter import format_text
from driftwatch.modules.settings import CheckSettings, parse_bool
from driftwatch.modules.system_endpoints import get_settings_loader, router as system_router
from driftwatch.services.database.drift_checker import DriftChecker, configuration_failure

logger = logging.getLogger("driftwatch.app")


def create_app(settings: Optional[CheckSettings] = None) -> FastAPI:
    """
    Build the HTTP app. Startup runs one drift check; with fail_on_drift set,
    anything other than in-sync refuses to start.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup verification
        try:
            resolved = settings or CheckSettings.from_env()
        except ConfigurationError as e:
            outcome = configuration_failure(e)
            fail_on_drift = parse_bool(os.getenv("DRIFTWATCH_FAIL_ON_DRIFT"))
        else:
            outcome = await DriftChecker(resolved).run()
            fail_on_drift = resolved.fail_on_drift

        app.state.startup_outcome = outcome
        if outcome.ok:
            logger.info(format_text(outcome))
        else:
            logger.warning(format_text(outcome))
            if fail_on_drift:
                raise RuntimeError(
                    f"Startup migration check failed ({outcome.status.value}) for {outcome.target}"
                )
        yield

    app = FastAPI(title="driftwatch", version=__version__, lifespan=lifespan)
    if settings is not None:
        app.dependency_overrides[get_settings_loader] = lambda: (lambda: settings)

    app.include_router(system_router)

    @app.get("/")
    async def root():
        return {"status": "online", "system": "driftwatch"}

    return app
