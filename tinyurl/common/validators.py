"""Validation utilities for URL shortener."""

from urllib.parse import urlparse
from typing import Tuple


# Browser and crawler requests that land on the catch-all redirect route
NON_CODE_PATHS = ("favicon.ico", "robots.txt", "sitemap.xml", ".well-known")


def is_valid_url(url: str) -> Tuple[bool, str]:
    """Validate a URL.
    
    Args:
        url: The URL to validate
        
    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "URL is required"
    
    if len(url) > 2048:
        return False, "URL is too long (max 2048 characters)"
    
    try:
        result = urlparse(url)
        
        # Check if scheme is http or https
        if result.scheme not in ["http", "https"]:
            return False, "URL must use http or https protocol"
        
        # Check if netloc (domain) exists
        if not result.hostname:
            return False, "URL must have a valid domain"
        
        return True, ""
        
    except ValueError as e:
        return False, f"Invalid URL format: {str(e)}"


def prepare_submitted_url(url: str) -> str:
    """Trim a submitted URL and add ``https://`` when no protocol is given."""
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = "https://" + url
    return url


def check_resolvable_code(short_code: str, min_length: int = 3, max_length: int = 15) -> Tuple[bool, str]:
    """Check whether a presented path segment can be a short code at all.
    
    Deliberately looser than the generator's alphabet so that codes from
    older records still resolve.
    
    Args:
        short_code: The path segment
        min_length: Minimum length
        max_length: Maximum length
        
    Returns:
        Tuple of (is_valid, error_message)
    """
    if not short_code or not isinstance(short_code, str):
        return False, "Short code is required"
    
    if any(path in short_code for path in NON_CODE_PATHS):
        return False, f"'{short_code}' is not a short code"
    
    if len(short_code) < min_length or len(short_code) > max_length:
        return False, f"Short code must be between {min_length} and {max_length} characters long"
    
    return True, ""
