from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from epiviz.api.tables import router as tables_router
from epiviz.api.visualize import router as visualize_router
from epiviz.config.settings import settings

app = FastAPI(
    title="Epicurve API",
    description="Vega-Lite epidemic curves and line-list clean-up for uploaded CSV/Excel files",
)


def _parse_cors_origins(value: str) -> tuple[list[str], bool]:
    raw = (value or "").strip()
    if raw == "*":
        # Credentials are not compatible with wildcard origins.
        return ["*"], False
    return [o.strip() for o in raw.split(",") if o.strip()], True


origins, allow_credentials = _parse_cors_origins(settings.cors_allow_origins)
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

app.include_router(visualize_router, prefix="/api")
app.include_router(tables_router, prefix="/api")


@app.get("/health", tags=["health"])
async def health() -> dict:
    return {"status": "ok"}
