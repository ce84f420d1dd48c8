"""
Site artifact - the html/css/js triple describing one generated website
"""
from pydantic import BaseModel


class SiteArtifact(BaseModel):
    """Generated website code, one string per file"""
    html: str
    css: str
    js: str
