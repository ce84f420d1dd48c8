"""
Website generation API router
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
import time

from site_engine.config import settings
from site_engine.dependencies import get_generator, limiter
from site_engine.logging_config import logger
from site_engine.services.site_artifact import SiteArtifact
from site_engine.services.site_generator import SiteGenerator

router = APIRouter()


class GenerateSiteRequest(BaseModel):
    """Request model for generating a website"""
    prompt: str


@router.post("/generate-site", response_model=SiteArtifact)
@limiter.limit(settings.GENERATE_RATE_LIMIT)
async def generate_site(
    request: Request,
    data: GenerateSiteRequest,
    generator: SiteGenerator = Depends(get_generator)
):
    """
    Generate a website from a natural-language prompt.

    Returns the html body, stylesheet and script as three strings.
    Model output that is not a JSON object with string html/css/js keys
    comes back as 500 with ``error``, ``kind`` and the untouched ``raw`` text.
    Failures reaching the completion API come back as 502.
    """
    if not data.prompt.strip():
        raise HTTPException(status_code=422, detail="Prompt must not be empty")

    start_time = time.time()
    logger.info("Site generation request received", prompt_length=len(data.prompt))

    artifact = await generator.generate(data.prompt)

    logger.info(
        "Site generation request completed",
        execution_time=round(time.time() - start_time, 3)
    )
    return artifact
