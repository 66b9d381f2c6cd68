import os

from fastapi import Request
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles


ONE_YEAR = 31536000
ONE_HOUR = 3600


def apply_cache_headers(headers, path: str, production: bool) -> None:
    headers["Cache-Control"] = f"public, max-age={ONE_YEAR if production else 0}"
    if path.endswith((".js", ".css")):
        headers["Cache-Control"] = f"public, max-age={ONE_YEAR}"
    elif path.endswith(".html"):
        headers["Cache-Control"] = f"public, max-age={ONE_HOUR}"
        headers["X-Content-Type-Options"] = "nosniff"
        headers["X-Frame-Options"] = "DENY"


class CachedStaticFiles(StaticFiles):
    def __init__(self, *args, production: bool = False, **kwargs):
        self.production = production
        super().__init__(*args, **kwargs)

    def file_response(self, full_path, stat_result, scope, status_code: int = 200):
        response = super().file_response(full_path, stat_result, scope, status_code)
        apply_cache_headers(response.headers, str(full_path), self.production)
        return response


def _looks_like_file(path: str) -> bool:
    return "." in path.rsplit("/", 1)[-1]

def spa_fallback(request: Request):
    """
    Неизвестный путь: /api/* и файлы -> 404 JSON,
    всё остальное -> index.html (маршруты SPA).
    """
    path = request.url.path
    if path.startswith("/api/") or path == "/api":
        return JSONResponse(status_code=404, content={"error": "Not found"})
    if _looks_like_file(path):
        return JSONResponse(status_code=404, content={"error": "File not found"})

    settings = request.app.state.settings
    index_path = os.path.join(settings.STATIC_DIR, "index.html")
    if request.method not in ("GET", "HEAD") or not os.path.isfile(index_path):
        return JSONResponse(status_code=404, content={"error": "Not found"})

    response = FileResponse(index_path, media_type="text/html")
    apply_cache_headers(response.headers, index_path, not settings.is_development)
    return response
