# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

import atexit

from flask import Flask

from otel_demo.infrastructure.container import Container
from otel_demo.shared.config import AppConfig, load_config
from otel_demo.shared.logging import logger, setup_logging
from otel_demo.shared.middleware.cors import configure_cors
from otel_demo.shared.middleware.error_handler import configure_error_handling
from otel_demo.shared.middleware.request_logger import configure_request_logging

CONTAINER_KEY = "otel_demo.container"


def create_app(config: AppConfig | None = None) -> Flask:
    config = config or load_config()
    setup_logging(config.log_level, log_file=config.log_file, debug_mode=config.debug_logging)

    container = Container(config)
    telemetry = container.telemetry

    app = Flask(__name__)
    app.json.ensure_ascii = False  # type: ignore[attr-defined]
    app.extensions[CONTAINER_KEY] = container

    configure_error_handling(app, debug_mode=config.debug_logging)
    configure_cors(app, allowed_origins=config.security.allowed_origins)
    configure_request_logging(
        app,
        telemetry=telemetry.sink,
        debug_mode=config.debug_logging,
        metrics_enabled=config.telemetry.metrics_enabled,
    )

    app.register_blueprint(container.user_controller.as_blueprint())
    app.register_blueprint(container.misc_controller.as_blueprint())

    telemetry.instrument(app, container.engine)
    if telemetry.tracer_provider is not None or telemetry.logger_provider is not None:
        atexit.register(telemetry.shutdown)

    logger.info(
        f"Flask app initialized storage={config.storage.backend.value} "
        f"telemetry={config.telemetry.mode.value}"
    )
    return app


def main() -> None:
    config = load_config()
    app = create_app(config)
    logger.info(
        f"{config.telemetry.service_name} ({config.telemetry.mode.value}) "
        f"listening on http://localhost:{config.port}"
    )
    app.run(host="0.0.0.0", port=config.port, debug=config.debug_logging)


if __name__ == "__main__":
    main()
