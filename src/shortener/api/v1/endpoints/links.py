from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import RedirectResponse

from src.shortener.api.deps import get_app_settings, get_service, run_store_call, to_http_exception
from src.shortener.core.config import Settings
from src.shortener.core.exceptions import ShortenerError
from src.shortener.schemas.url import URL, ShortenRequest
from src.shortener.services.url_service import URLService

router = APIRouter()


@router.post("/shorten", response_model=URL, status_code=status.HTTP_201_CREATED)
async def create_link(
    body: ShortenRequest,
    service: URLService = Depends(get_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Create a shortened URL.

    Returns the new mapping with its generated 7-character code.
    """
    try:
        return await run_store_call(settings, service.shorten, body.url)
    except ShortenerError as e:
        raise to_http_exception(e)


@router.delete("/url/{id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_link(
    id: str,
    service: URLService = Depends(get_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Delete a shortened URL by its id.
    """
    try:
        await run_store_call(settings, service.delete, id)
    except ShortenerError as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{code}", tags=["redirect"])
async def redirect_to_url(
    code: str,
    service: URLService = Depends(get_service),
    settings: Settings = Depends(get_app_settings),
):
    try:
        url = await run_store_call(settings, service.resolve, code)
    except ShortenerError as e:
        raise to_http_exception(e)

    return RedirectResponse(url.original_url, status_code=status.HTTP_302_FOUND)
