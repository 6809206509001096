"""Helper functions for the application."""
from flask import current_app, jsonify, request
from typing import Any, Dict, Tuple

def handle_error(error, status_code: int):
    """Handle application errors with consistent format."""
    return jsonify({
        'error': True,
        'message': str(error),
        'status_code': status_code
    }), status_code

def success_response(data: Any = None, message: str = "Success", status_code: int = 200, **extra):
    """Return consistent success response."""
    response = {
        'error': False,
        'message': message
    }

    if data is not None:
        response['data'] = data
    response.update(extra)

    return jsonify(response), status_code

def error_response(message: str, status_code: int = 400, **extra):
    """Return consistent error response."""
    response = {
        'error': True,
        'message': message,
        'status_code': status_code
    }
    response.update(extra)
    return jsonify(response), status_code

def get_pagination_args(default_limit: int = None) -> Tuple[int, int]:
    """Read ``page``/``limit`` query args clamped to the configured maximum."""
    default_limit = default_limit or current_app.config.get('DEFAULT_PAGE_SIZE', 20)
    max_limit = current_app.config.get('MAX_PAGE_SIZE', 100)

    page = request.args.get('page', type=int, default=1) or 1
    limit = request.args.get('limit', type=int, default=default_limit) or default_limit
    return max(page, 1), min(max(limit, 1), max_limit)

def pagination_meta(page: int, limit: int, total: int) -> Dict[str, int]:
    """Pagination block returned next to list payloads."""
    return {
        'currentPage': page,
        'totalPages': (total + limit - 1) // limit if limit else 0,
        'totalRecords': total,
        'limit': limit
    }
