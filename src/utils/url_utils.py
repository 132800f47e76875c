"""URL 생성/파싱 유틸리티

테넌트 스토어 URL 규칙:
- 홈: https://{slug}.{domain}
- 상품 목록: https://{slug}.{domain}/products
- 상품 상세: https://{slug}.{domain}/p/{product_slug} (slug 없으면 /product/{id})
- 사이트맵: https://{slug}.{domain}/sitemap.xml
"""
from typing import List, Optional
from urllib.parse import urlparse


def tenant_base_url(slug: str, domain: str) -> str:
    """테넌트 스토어 루트 URL"""
    return f"https://{slug}.{domain}"


def tenant_page_urls(slug: str, domain: str) -> List[str]:
    """테넌트 색인 대상 페이지 (홈 + 상품 목록)"""
    base_url = tenant_base_url(slug, domain)
    return [
        base_url,  # Homepage
        f"{base_url}/products",  # Products listing
    ]


def product_url(
    tenant_slug: str,
    domain: str,
    product_id: str,
    product_slug: Optional[str] = None,
) -> str:
    """상품 정규 URL

    Examples:
        >>> product_url("acme", "fibidy.com", "42", "red-shoes")
        'https://acme.fibidy.com/p/red-shoes'
        >>> product_url("acme", "fibidy.com", "42")
        'https://acme.fibidy.com/product/42'
    """
    base_url = tenant_base_url(tenant_slug, domain)
    if product_slug:
        return f"{base_url}/p/{product_slug}"
    return f"{base_url}/product/{product_id}"


def products_listing_url(tenant_slug: str, domain: str) -> str:
    return f"{tenant_base_url(tenant_slug, domain)}/products"


def tenant_sitemap_url(slug: str, domain: str) -> str:
    return f"{tenant_base_url(slug, domain)}/sitemap.xml"


def platform_sitemap_url(domain: str, path: str = "/server-sitemap-index.xml") -> str:
    if not path.startswith("/"):
        path = "/" + path
    return f"https://{domain}{path}"


def extract_host(url: str) -> Optional[str]:
    """URL에서 host(포트 포함) 추출. 파싱 불가 시 None

    Examples:
        >>> extract_host("https://acme.fibidy.com/products")
        'acme.fibidy.com'
        >>> extract_host("not a url")
    """
    if not url or not isinstance(url, str):
        return None

    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return None

    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return parsed.netloc


def extract_tenant_slug(url: str, domain: str) -> Optional[str]:
    """플랫폼 서브도메인 URL에서 테넌트 slug 추출

    Examples:
        >>> extract_tenant_slug("https://acme.fibidy.com/p/red-shoes", "fibidy.com")
        'acme'
        >>> extract_tenant_slug("https://fibidy.com/", "fibidy.com")
    """
    host = extract_host(url)
    if not host:
        return None

    hostname = host.split(":", 1)[0].lower()
    suffix = f".{domain.lower()}"
    if not hostname.endswith(suffix):
        return None

    slug = hostname[: -len(suffix)]
    if not slug or "." in slug:
        return None
    return slug


def extract_product_ref(url: str) -> Optional[tuple[str, bool]]:
    """상품 URL이면 (식별자, slug 여부) 반환, 아니면 None

    - /p/{slug} -> ("slug", True)
    - /product/{id} -> ("id", False)
    """
    try:
        path = urlparse(url).path
    except ValueError:
        return None

    parts = [p for p in path.split("/") if p]
    if len(parts) >= 2 and parts[0] == "p":
        return parts[1], True
    if len(parts) >= 2 and parts[0] == "product":
        return parts[1], False
    return None
