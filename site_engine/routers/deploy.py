"""
Deploy API router
"""
from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel
from typing import Dict

from site_engine.dependencies import get_deployer
from site_engine.logging_config import logger
from site_engine.services.netlify_deployer import NetlifyDeployer

router = APIRouter()


class DeployResponse(BaseModel):
    """Response model for a successful deploy"""
    message: str
    url: str


@router.post("/deploy", response_model=DeployResponse)
async def deploy_site(
    files: Dict[str, str] = Body(...),
    deployer: NetlifyDeployer = Depends(get_deployer)
):
    """
    Publish files to the configured Netlify site.

    The body maps file names to contents, e.g.
    ``{"index.html": "...", "style.css": "...", "script.js": "..."}``.
    Failures return ``error``, ``kind`` and, where available, ``details``
    with the command output.
    """
    logger.info("Deploy request received", files=sorted(files))

    result = await deployer.deploy(files)

    return DeployResponse(message="Deployment successful!", url=result.url)
