import logging
import os

from config import config
from flask import Flask, jsonify
from flask_cors import CORS

from services.answer_evaluation_service import EVALUATION_SERVICE_KEY, AnswerEvaluationService
from services.resilience import CircuitBreaker, RetryPolicy, is_transient_error
from services.semantic_evaluator import SemanticEvaluator


def build_evaluation_service(app_config) -> AnswerEvaluationService:
    """Wire the evaluation service (and its semantic evaluator) from config"""
    semantic_evaluator = None

    if app_config.get("SEMANTIC_EVALUATION_ENABLED", True):
        semantic_evaluator = SemanticEvaluator(
            provider_name=app_config.get("LLM_PROVIDER"),
            model=app_config.get("LLM_MODEL"),
            request_timeout=app_config.get("SEMANTIC_REQUEST_TIMEOUT", 10.0),
            retry_policy=RetryPolicy(
                max_attempts=app_config.get("RETRY_MAX_ATTEMPTS", 3),
                initial_delay=app_config.get("RETRY_INITIAL_DELAY", 1.0),
                max_delay=app_config.get("RETRY_MAX_DELAY", 10.0),
                backoff_multiplier=app_config.get("RETRY_BACKOFF_MULTIPLIER", 2.0),
                is_retryable=is_transient_error,
            ),
            circuit_breaker=CircuitBreaker(
                threshold=app_config.get("CIRCUIT_BREAKER_THRESHOLD", 5),
                reset_timeout=app_config.get("CIRCUIT_BREAKER_RESET_TIMEOUT", 30.0),
            ),
        )

    return AnswerEvaluationService(
        semantic_evaluator=semantic_evaluator,
        numeric_tolerance_ratio=app_config.get("NUMERIC_TOLERANCE_RATIO", 0.05),
        fuzzy_match_threshold=app_config.get("FUZZY_MATCH_THRESHOLD", 0.7),
        unescalated_confidence=app_config.get("UNESCALATED_CONFIDENCE", 0.3),
    )


def create_app(config_name=None, evaluation_service=None):
    """Application factory pattern"""
    if config_name is None:
        config_name = os.getenv("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    # Initialize CORS for the quiz frontend
    allowed_origins = [
        origin.strip() for origin in app.config["ALLOWED_ORIGINS"].split(",") if origin.strip()
    ]
    CORS(
        app,
        resources={r"/api/*": {"origins": allowed_origins}},
        supports_credentials=True,
    )

    # One service per app: its circuit breaker is shared by all requests
    app.extensions[EVALUATION_SERVICE_KEY] = evaluation_service or build_evaluation_service(app.config)

    from routes.evaluation import bp as evaluation_bp

    app.register_blueprint(evaluation_bp)

    # Home route
    @app.route("/")
    def home():
        return jsonify({"message": "Quiz answer evaluation service", "version": "1.0.0"})

    # Health check route
    @app.route("/health")
    def health_check():
        service = app.extensions[EVALUATION_SERVICE_KEY]
        evaluator = service.semantic_evaluator
        return jsonify({
            "status": "healthy",
            "semantic_evaluation": evaluator is not None,
            "semantic_circuit": evaluator.get_circuit_state() if evaluator else None,
        }), 200

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True, port=5001)
