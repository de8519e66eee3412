from flask import jsonify
from werkzeug.exceptions import HTTPException


class JobBoardError(Exception):
    """Base for errors that end the request with a fixed status code."""

    status_code = 500
    message = "Internal error"

    def __init__(self, message=None, details=None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.details = details

    def to_dict(self):
        body = {"error": self.message}
        if self.details:
            body["errors"] = self.details
        return body


class Unauthenticated(JobBoardError):
    status_code = 401
    message = "Unauthenticated"


class Forbidden(JobBoardError):
    status_code = 403
    message = "Unauthorized"


class NotFound(JobBoardError):
    status_code = 404
    message = "Not found"


class Conflict(JobBoardError):
    status_code = 409
    message = "Conflict"


class ValidationError(JobBoardError):
    status_code = 422
    message = "Validation failed"


def register_error_handlers(app):
    @app.errorhandler(JobBoardError)
    def handle_job_board_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({"error": error.description}), error.code
