"""
Summary Prompts
Chat and completion prompts asking for the four digest sections
"""
from typing import List

from models import NewsItem
from .base import Message


SYSTEM_PROMPT_TEMPLATE = """You are an expert news analyst specializing in {topic}. Your role is to:
- Analyze news posts and identify key trends and developments
- Create comprehensive, well-structured markdown summaries
- Maintain objectivity and technical accuracy
- Prioritize high-quality, high-engagement content
- Present information in a clear, newsworthy format"""


USER_PROMPT_TEMPLATE = """Analyze these {count} stories/posts about {topic} from the last 24 hours and create a comprehensive news summary.

**News Posts:**
{posts}

**Create a markdown summary with these exact sections:**

## Overview
Provide 2-3 sentences summarizing the main themes, trends, and overall sentiment in {topic} today.

## Key Developments
- List major developments, announcements, or breakthroughs
- Each bullet should be 1-2 sentences
- Focus on concrete, newsworthy items
- Order by significance (highest-ranked posts first)

## Notable Highlights
Present 3-5 standout items in this format:
- **Topic/Company Name**: Brief description of the highlight or announcement

## Sources
List all source posts in this format:
- [Post Title](URL) - Source (score)

**Guidelines:**
- Use proper markdown formatting throughout
- Be concise but informative
- Focus on facts, not speculation
- Maintain a professional, objective tone"""


COMPLETION_PROMPT_TEMPLATE = """Task: Analyze these {count} posts about {topic} from the last 24 hours and create a comprehensive news summary.

Posts:
{posts}

Instructions: Write a well-formatted markdown summary with exactly these sections:

## Overview
Write 2-3 sentences capturing the main themes and trends in {topic}.

## Key Developments
- List each major development as a bullet point
- Be concise but informative (1-2 sentences per point)
- Focus on concrete announcements, breakthroughs, and significant updates

## Notable Highlights
Format as: **Title/Topic**: Brief description
Focus on the most impactful stories that stand out

## Sources
List each source as: [Post Title](URL) - source (score)

Requirements:
- Use proper markdown formatting
- Be objective and newsworthy
- Follow the order the posts are listed in
- Keep technical accuracy"""


def source_label(item: NewsItem) -> str:
    """``r/<subreddit>`` for Reddit posts, the plain source otherwise"""
    if item.source_type == "reddit" and item.source:
        return f"r/{item.source}"
    return item.source or item.source_type


def format_news_items(items: List[NewsItem]) -> str:
    return "\n\n".join(
        f'{index}. **"{item.title}"**\n'
        f"   - Source: {source_label(item)}\n"
        f"   - Score: {item.score}\n"
        f"   - URL: {item.url}"
        for index, item in enumerate(items, start=1)
    )


def build_summary_messages(topic: str, items: List[NewsItem]) -> List[Message]:
    """System and user messages for chat models; item order is preserved"""
    return [
        Message.system(SYSTEM_PROMPT_TEMPLATE.format(topic=topic)),
        Message.user(
            USER_PROMPT_TEMPLATE.format(
                count=len(items),
                topic=topic,
                posts=format_news_items(items),
            )
        ),
    ]


def build_completion_prompt(topic: str, items: List[NewsItem]) -> str:
    """Single instruction prompt for completion style models"""
    posts = "\n\n".join(
        f'{index}. "{item.title}" ({source_label(item)}, {item.score})\n   {item.url}'
        for index, item in enumerate(items, start=1)
    )
    return COMPLETION_PROMPT_TEMPLATE.format(count=len(items), topic=topic, posts=posts)
