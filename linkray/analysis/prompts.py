"""Prompt templates for quick (single page) and deep (crawled site) analysis."""

from __future__ import annotations

from dataclasses import dataclass

from linkray.scraper.models import ScrapedContent

_RUBRIC = """\
Rules for Risk Score (0-100, where 100 is Safe):
- Phishing, Scams, Malware = 0-20
- Spammy, Low Quality, Unverified Crypto = 30-50
- Legitimate Business, Blogs, News = 80-90
- Verified Tech Platforms (e.g., GitHub, AWS, Google) = 95-100"""

_QUICK_TEMPLATE = """\
You are a cybersecurity expert. Analyze this website content and respond ONLY \
with a valid JSON object (no markdown, no code blocks, just raw JSON).

Website Title: {title}
Content: {text}

{rubric}

Return JSON with this exact structure:
{{
  "summary": "2-sentence summary of what this website is about",
  "risk_score": <integer from 0-100, where 100 is completely safe>,
  "category": "one category like Blog, E-commerce, News, Social Media, Phishing, Scam, Educational, etc.",
  "tags": ["tag1", "tag2", "tag3"]
}}"""

_DEEP_TEMPLATE = """\
You are a cybersecurity expert. Analyze this website content in extreme detail. \
The content below was collected from several pages of the same site; each page \
starts with a line holding its URL in square brackets.

Title: {title}
Content: {text}

{rubric}

Check and mention ALL possible risk factors and safety signals, including:
- SSL/HTTPS presence
- Contact information (email, phone, address)
- Social media links
- Privacy policy and terms
- Company details and reviews
- Domain age and reputation
- External links and redirects
- Presence of suspicious keywords or patterns
- User-generated content
- Downloadable files
- Ads, popups, trackers
- Site structure and navigation
- Trust badges, certifications
- Any other relevant signals

Respond ONLY with a JSON object with this EXACT structure:
{{
  "summary": "A comprehensive, multi-paragraph summary (at least 8-10 sentences) covering the website's purpose, main sections, key features, target audience, notable content, and all risk/safety factors found.",
  "risk_score": 50,
  "reason": "Explain why you gave this risk_score, referencing specific content, pages, and all risk/safety factors checked. Be consistent with the score.",
  "category": "Category Name",
  "tags": ["tag1", "tag2", "tag3", "tag4", "tag5"]
}}"""


@dataclass(frozen=True)
class PromptTemplate:
    """A named prompt body.  ``wants_reason`` marks templates that ask the
    model for a ``reason`` field."""

    name: str
    body: str
    wants_reason: bool = False

    def render(self, content: ScrapedContent) -> str:
        return self.body.format(title=content.title, text=content.text, rubric=_RUBRIC)


QUICK_PROMPT = PromptTemplate(name="quick", body=_QUICK_TEMPLATE)
DEEP_PROMPT = PromptTemplate(name="deep", body=_DEEP_TEMPLATE, wants_reason=True)
