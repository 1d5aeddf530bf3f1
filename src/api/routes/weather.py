"""Weather forecast endpoint."""

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_weather_service, verify_api_key
from services.weather import WeatherService

router = APIRouter(prefix="/weather", tags=["weather"], dependencies=[Depends(verify_api_key)])


@router.get("/forecast")
async def get_forecast(
    zip_code: str | None = Query(None, alias="zipCode"),
    weather: WeatherService = Depends(get_weather_service),
) -> dict:
    """One-day forecast for a zip code, passed through from the provider."""
    return await weather.get_forecast(zip_code)
