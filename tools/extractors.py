"""
tools/extractors.py — Provider-aware extraction: parsed HTML → title/content/description.

THE CORE CONCEPT: One strategy per provider, one shared fallback
  Claude, ChatGPT, Gemini, Grok and Perplexity each render a shared
  conversation under different DOM conventions. A single generic selector
  list has poor recall across all of them, so each provider gets its own
  ordered list of selectors to try first.

  For every selector:
    - take the text of every top-level match (nested matches would double-count)
    - join, normalize, and check it against MIN_CONTENT_CHARS (100)
    - first selector that clears the threshold wins

  If no provider selector clears the threshold — or the provider is OTHER —
  the GENERIC extractor runs: a broader list of common content containers
  (main, article, [role=main], .content, ...) ending in the whole <body>
  as the last resort. The generic extractor always returns something.

THE REGISTRY:
  EXTRACTORS maps Provider → SelectorExtractor. Adding a provider means
  registering a new strategy with register_extractor(); the pipeline never
  changes. Everything here is a pure transformation over an already-fetched
  document — no network access.

USAGE:
  from tools.extractors import extract_fields
  from tools.providers import Provider

  fields = extract_fields(html, Provider.CLAUDE)
  print(fields.title)                  # "<title>" or "Claude Conversation"
  print(fields.metadata["selector"])   # which selector produced the content
"""

from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Tag

from tools.extract import normalize_text, DEFAULT_MAX_LENGTH
from tools.providers import Provider


MIN_CONTENT_CHARS = 100
TITLE_MAX_CHARS = 200
DESCRIPTION_MAX_CHARS = 300

# Elements whose text is never page content.
_NON_CONTENT_TAGS = ["script", "style", "noscript", "template"]

GENERIC_SELECTORS: tuple[str, ...] = (
    "main",
    "article",
    '[role="main"]',
    ".content",
    "#content",
    ".conversation",
    ".chat-messages",
    ".post-content",
    ".entry-content",
    "#main",
)


# ── Result type ────────────────────────────────────────────────────────────────

@dataclass
class ExtractedFields:
    """
    Output of one extraction pass.

    metadata always carries:
      extractor — provider tag of the strategy that produced content, or "generic"
      selector  — the CSS selector that matched, "body" or "document"
    """
    title: str
    content: str
    description: str
    metadata: dict = field(default_factory=dict)

    @property
    def content_length(self) -> int:
        return len(self.content)


# ── Strategies ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SelectorExtractor:
    """
    One provider's extraction strategy: an ordered selector list + default title.

    extract() returns None when no selector clears the content threshold —
    the caller decides what to fall back to.
    """
    name: str
    selectors: tuple[str, ...]
    default_title: str

    def extract(
        self,
        soup: BeautifulSoup,
        max_length: int = DEFAULT_MAX_LENGTH,
    ) -> ExtractedFields | None:
        for selector in self.selectors:
            content = _select_text(soup, selector, max_length)
            if len(content) >= MIN_CONTENT_CHARS:
                return _fields(soup, self, content, selector)
        return None


class GenericExtractor(SelectorExtractor):
    """Broad selector list that always produces a result, ending in <body>."""

    def extract(
        self,
        soup: BeautifulSoup,
        max_length: int = DEFAULT_MAX_LENGTH,
    ) -> ExtractedFields:
        found = super().extract(soup, max_length)
        if found is not None:
            return found

        # Last resort: the whole page body, whatever its length.
        root = soup.body if soup.body is not None else soup
        selector = "body" if soup.body is not None else "document"
        content = normalize_text(root.get_text(separator=" "), max_length)
        return _fields(soup, self, content, selector)


GENERIC = GenericExtractor(
    name="generic",
    selectors=GENERIC_SELECTORS,
    default_title="Untitled Research",
)

EXTRACTORS: dict[Provider, SelectorExtractor] = {
    Provider.CLAUDE: SelectorExtractor(
        name=Provider.CLAUDE.value,
        selectors=(
            '[data-testid="conversation-turn"]',
            ".font-claude-message",
            '[data-testid="user-message"], .font-claude-message',
            'div[class*="conversation"]',
            "main .prose",
        ),
        default_title="Claude Conversation",
    ),
    Provider.CHATGPT: SelectorExtractor(
        name=Provider.CHATGPT.value,
        selectors=(
            "[data-message-author-role]",
            'article[data-testid^="conversation-turn"]',
            ".markdown.prose",
            'div[class*="conversation"]',
        ),
        default_title="ChatGPT Conversation",
    ),
    Provider.GEMINI: SelectorExtractor(
        name=Provider.GEMINI.value,
        selectors=(
            "message-content",
            ".conversation-container",
            ".model-response-text",
            ".query-text, .model-response-text",
        ),
        default_title="Gemini Conversation",
    ),
    Provider.GROK: SelectorExtractor(
        name=Provider.GROK.value,
        selectors=(
            ".message-bubble",
            'div[class*="response-content"]',
            '[data-testid="tweetText"]',
            'div[class*="conversation"]',
        ),
        default_title="Grok Conversation",
    ),
    Provider.PERPLEXITY: SelectorExtractor(
        name=Provider.PERPLEXITY.value,
        selectors=(
            '[id^="markdown-content"]',
            'div[class*="answer"]',
            ".prose",
            'div[class*="thread"]',
        ),
        default_title="Perplexity Search",
    ),
}


def register_extractor(provider: Provider, extractor: SelectorExtractor) -> None:
    """Add or replace the strategy for a provider."""
    EXTRACTORS[provider] = extractor


# ── Public API ─────────────────────────────────────────────────────────────────

def parse_html(html: str) -> BeautifulSoup:
    """Parse HTML and drop elements that never hold readable content."""
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(_NON_CONTENT_TAGS):
        tag.decompose()
    return soup


def extract_fields(
    document: str | BeautifulSoup,
    provider: Provider,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> ExtractedFields:
    """
    Provider-specific extraction with generic fallback.

    Args:
        document:   Raw HTML or an already-parsed soup (see parse_html).
        provider:   Tag from detect_provider().
        max_length: Content bound — the caller's budget.

    Returns:
        ExtractedFields. Never raises, never None — the generic extractor
        always returns at least the page body text (possibly empty).
        The title falls back to the provider's default, not the generic one.
    """
    soup = parse_html(document) if isinstance(document, str) else document

    strategy = EXTRACTORS.get(provider)
    if strategy is not None:
        fields = strategy.extract(soup, max_length)
        if fields is not None:
            return fields

    fields = extract_generic(soup, max_length)
    if strategy is not None and not _page_title(soup):
        fields.title = strategy.default_title
    return fields


def extract_generic(
    document: str | BeautifulSoup,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> ExtractedFields:
    """Run only the generic extractor. Always returns a result."""
    soup = parse_html(document) if isinstance(document, str) else document
    return GENERIC.extract(soup, max_length)


# ── Private helpers ────────────────────────────────────────────────────────────

def _select_text(soup: BeautifulSoup, selector: str, max_length: int) -> str:
    """
    Joined, normalized text of every top-level element matching selector.

    A match nested inside another match is skipped — its text is already
    included in the ancestor's get_text().
    """
    matches = soup.select(selector)
    if not matches:
        return ""

    matched_ids = {id(el) for el in matches}
    parts = []
    for el in matches:
        if any(id(parent) in matched_ids for parent in el.parents):
            continue
        parts.append(el.get_text(separator=" "))

    return normalize_text(" ".join(parts), max_length)


def _page_title(soup: BeautifulSoup) -> str:
    if soup.title is None:
        return ""
    return normalize_text(soup.title.get_text(), TITLE_MAX_CHARS)


def _meta_description(soup: BeautifulSoup) -> str:
    """<meta name=description>, then og:description, else ""."""
    for attrs in ({"name": "description"}, {"property": "og:description"}):
        tag = soup.find("meta", attrs=attrs)
        if isinstance(tag, Tag) and tag.get("content"):
            return normalize_text(str(tag["content"]), DESCRIPTION_MAX_CHARS)
    return ""


def _fields(
    soup: BeautifulSoup,
    strategy: SelectorExtractor,
    content: str,
    selector: str,
) -> ExtractedFields:
    return ExtractedFields(
        title=_page_title(soup) or strategy.default_title,
        content=content,
        description=_meta_description(soup),
        metadata={"extractor": strategy.name, "selector": selector},
    )
