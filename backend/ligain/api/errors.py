from flask import current_app, jsonify

from ligain.errors import ConflictError, LigainError, NotFoundError, StorageError, ValidationError

_STATUS_BY_ERROR = (
    (NotFoundError, 404),
    (ValidationError, 400),
    (ConflictError, 409),
    (StorageError, 503),
)


def status_for(exc: LigainError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


def register_error_handlers(flask_app):
    @flask_app.errorhandler(LigainError)
    def handle_domain_error(exc):
        status = status_for(exc)
        if status >= 500:
            current_app.logger.error(f"[api-error] {type(exc).__name__}: {exc}")
        return jsonify({'error': str(exc), 'kind': type(exc).__name__}), status
