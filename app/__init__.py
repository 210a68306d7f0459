import logging
import os

from flask import Flask
from flask_sqlalchemy import SQLAlchemy

from config import config

logger = logging.getLogger(__name__)

db = SQLAlchemy()


def create_app(config_name=None):
    app = Flask(__name__)

    # Determine configuration
    if config_name is None:
        config_name = os.environ.get("FLASK_CONFIG", "default")

    app.config.from_object(config[config_name]())

    # Initialize extensions
    db.init_app(app)

    # Setup logging
    from app.utils.logging_config import setup_logging

    setup_logging(app)

    # Show configuration warnings
    show_config_warnings(app, config_name)

    # Create database tables
    with app.app_context():
        db.create_all()

    return app


def show_config_warnings(app, config_name):
    """Log configuration warnings and validate the scoring rules"""
    import warnings

    from app.utils.scoring_rules import describe_weights, weights_from_config

    logger.info(f"Kittens Scoreboard starting with '{config_name}' configuration")

    if config_name == "production" and app.config.get("DEBUG"):
        warnings.warn("DEBUG mode is enabled in production!", UserWarning)

    # Raises ScoringRulesError on a bad SCORING_RULES / SCORING_WEIGHTS value
    weights = weights_from_config(app.config)

    if not app.config.get("SCORING_RULES_EXPLICIT") and not app.config.get("TESTING"):
        logger.warning(
            f"SCORING_RULES not set, using table '{app.config.get('SCORING_RULES')}'. "
            "Two rule revisions disagree on first_dead and first_exploded; "
            "set SCORING_RULES=A or SCORING_RULES=B to choose one explicitly."
        )

    logger.info(
        f"Scoring rules '{app.config.get('SCORING_RULES')}': {describe_weights(weights)}"
    )

    db_url = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    if "sqlite" in db_url:
        if "memory" in db_url:
            logger.info("Using SQLite database (in-memory)")
        else:
            logger.info("Using SQLite database (scoreboard.db file)")
    elif "postgresql" in db_url:
        logger.info("Using PostgreSQL database")
    else:
        logger.info(
            f"Using database: {db_url.split('://')[0] if '://' in db_url else 'Unknown'}"
        )


from app import models  # noqa: F401, E402 - imported for model registration
