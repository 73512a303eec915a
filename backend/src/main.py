from __future__ import annotations

from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, Field

from config import Configuration
from models import ScoredPlace
from services.cities import GREECE_CITIES, CityTable
from services.feed import FeedRequest, build_feed
from services.places import GooglePlacesClient
from services.weather import OpenMeteoClient

load_dotenv()

app = FastAPI(title="Place Feed")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

CITY_TABLE = CityTable.from_records(GREECE_CITIES)


class ScoredPlacePayload(BaseModel):
    place_id: str
    name: str
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    vicinity: Optional[str] = None
    maps_url: str
    distance_km: float
    score: int
    liveVibeIndex: Optional[int] = None
    liveVibeState: Optional[str] = None
    reasonTokens: List[str] = []
    isFeatured: bool = False


class SectionsPayload(BaseModel):
    featured: List[ScoredPlacePayload] = []
    hotNow: List[ScoredPlacePayload] = []
    laterToday: List[ScoredPlacePayload] = []
    evening: List[ScoredPlacePayload] = []
    rainy: List[ScoredPlacePayload] = []


class FeedResponse(BaseModel):
    ok: bool = True
    status: str = "OK"
    context: Dict[str, Any]
    sections: SectionsPayload


class CityPayload(BaseModel):
    slug: str
    name: str
    local_name: Optional[str] = None
    region: str
    lat: float
    lng: float
    default_radius_meters: int = Field(..., description="Search radius used when none is requested")


def to_payload(p: ScoredPlace) -> ScoredPlacePayload:
    return ScoredPlacePayload(
        place_id=p.place_id,
        name=p.name,
        rating=p.rating,
        user_ratings_total=p.user_ratings_total,
        vicinity=p.vicinity,
        maps_url=p.maps_url,
        distance_km=p.distance_km,
        score=p.score,
        liveVibeIndex=p.live_vibe_index,
        liveVibeState=p.live_vibe_state,
        reasonTokens=p.reason_tokens,
        isFeatured=p.is_featured,
    )


def _places_client(cfg: Configuration) -> GooglePlacesClient:
    cached = getattr(app.state, "places_client", None)
    if cached is None or cached.cfg != cfg:
        cached = GooglePlacesClient(cfg)
        app.state.places_client = cached
    return cached


def _weather_client(cfg: Configuration) -> OpenMeteoClient:
    cached = getattr(app.state, "weather_client", None)
    if cached is None or cached.cfg != cfg:
        cached = OpenMeteoClient(cfg)
        app.state.weather_client = cached
    return cached


@app.get("/healthz")
def healthz() -> dict:
    cfg = Configuration.from_env()
    logger.info("cfg: {}", cfg.log_summary())
    return {"status": "ok"}


@app.get("/api/cities", response_model=List[CityPayload])
def list_cities() -> List[CityPayload]:
    return [
        CityPayload(
            slug=c.slug,
            name=c.name,
            local_name=c.local_name,
            region=c.region,
            lat=c.lat,
            lng=c.lng,
            default_radius_meters=CITY_TABLE.radius_meters(c),
        )
        for c in CITY_TABLE.all()
    ]


@app.get("/api/feed", response_model=FeedResponse)
async def feed(
    city: Optional[str] = None,
    user_lat: Optional[float] = Query(None, alias="userLat"),
    user_lng: Optional[float] = Query(None, alias="userLng"),
    radius: Optional[float] = None,
    weather: Optional[str] = None,
    audience: Optional[str] = None,
    vibe: Optional[str] = None,
    mobility: Optional[str] = None,
    budget: Optional[str] = None,
):
    try:
        cfg = Configuration.from_env()
        cfg.require_google_maps()
    except ValueError as exc:
        logger.error("feed unavailable: {}", exc)
        return JSONResponse(status_code=500, content={"ok": False, "error": str(exc)})

    req = FeedRequest(
        city=city,
        user_lat=user_lat,
        user_lng=user_lng,
        radius=radius,
        weather=weather,
        audience=audience,
        vibe=vibe,
        mobility=mobility,
        budget=budget,
    )

    try:
        result = await build_feed(
            req,
            cfg=cfg,
            cities=CITY_TABLE,
            places_client=_places_client(cfg),
            weather_client=_weather_client(cfg),
        )
    except Exception as exc:
        logger.exception("feed failed: {}", exc)
        return JSONResponse(status_code=500, content={"ok": False, "error": "internal error"})

    sections = {key: [to_payload(p) for p in places] for key, places in result["sections"].items()}
    return FeedResponse(
        ok=result["ok"],
        status=result["status"],
        context=result["context"],
        sections=SectionsPayload(**sections),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8010, reload=True)
