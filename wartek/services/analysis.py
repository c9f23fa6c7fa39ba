from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from wartek.core.errors import UpstreamServiceError
from wartek.services.categorizer import TextGenerator

logger = logging.getLogger(__name__)

UNAVAILABLE = "AI analysis temporarily unavailable."

SUMMARY_PROMPT = """\
You're a tech-savvy Gen Z content creator who breaks down tech news in a natural, conversational way. Analyze this tech article and give me the breakdown:

Title: "{title}"
Content: "{content}"

Start with a brief, catchy opening sentence that captures the main point. Then give me a detailed analysis that sounds like you're explaining this to your friends. Use bullet points for the important stuff, but keep it natural and conversational. Don't use formal markdown formatting like ** or ## - just write naturally.

Structure it like this:

[Start with one compelling sentence about what's happening]

The Main Story
What's actually happening here and why should anyone care?

Key Players
• Who's behind this tech?
• Any big companies or people involved?

The Tech Breakdown
• What exactly does this thing do?
• How is it different from what we already have?
• Is this actually innovative or just hype?

Why This Matters
• What problems is this solving if any?
• Who's this actually for?

Bottom Line
Give me your honest take - is this worth paying attention to or just another tech announcement? Rate it out of 10 and tell me why.

Skip any sections where you don't have enough info.
"""

FIVE_W_ONE_H_PROMPT = """\
Break down this tech story using the 5W1H method. Answer each question in one or two plain sentences, and write "Not mentioned" when the content does not say.

Title: "{title}"
Content: "{content}"

Who: who is involved?
What: what happened or was announced?
When: when did it happen or when will it happen?
Where: where does it take place or which markets does it affect?
Why: why does it matter?
How: how does it work or how was it done?
"""

COMPARISON_PROMPT = """\
Put this tech story in market context. Compare the product, company or technology against its closest competitors and alternatives.

Title: "{title}"
Content: "{content}"

Cover:
• Main competitors or alternatives
• Where this is stronger and where it is weaker
• Pricing or positioning, if known
• Likely impact on the market over the next year

Keep it short, use bullet points, no markdown headings.
"""

@dataclass
class AnalysisBundle:
    summary: str
    analysis: str
    comparison: str

async def _generate(generator: TextGenerator, template: str, title: str, content: str) -> str:
    try:
        text = await generator.generate(template.format(title=title, content=content))
    except UpstreamServiceError as e:
        logger.warning("AI analysis generation failed: %s", e)
        return UNAVAILABLE
    return text or UNAVAILABLE

async def generate_summary(generator: TextGenerator, title: str, content: str) -> str:
    return await _generate(generator, SUMMARY_PROMPT, title, content)

async def generate_5w1h(generator: TextGenerator, title: str, content: str) -> str:
    return await _generate(generator, FIVE_W_ONE_H_PROMPT, title, content)

async def generate_comparison(generator: TextGenerator, title: str, content: str) -> str:
    return await _generate(generator, COMPARISON_PROMPT, title, content)

async def generate_all(generator: TextGenerator, title: str, content: str) -> AnalysisBundle:
    results = await asyncio.gather(
        generate_summary(generator, title, content),
        generate_5w1h(generator, title, content),
        generate_comparison(generator, title, content),
        return_exceptions=True,
    )
    texts = []
    for result in results:
        if isinstance(result, BaseException):
            # One failed leg does not discard the other two
            logger.error("AI analysis leg raised: %r", result)
            texts.append(UNAVAILABLE)
        else:
            texts.append(result)
    return AnalysisBundle(summary=texts[0], analysis=texts[1], comparison=texts[2])
