"""
Prompt-to-website engine: LLM site generation and Netlify deploys
"""
__version__ = "1.0.0"
