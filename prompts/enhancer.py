"""
prompts/enhancer.py — Prompt for AI enhancement of an extracted page.
"""

ENHANCE_PROMPT = """\
Please analyze this research content and extract structured information.
The content comes from: {url}

Content:
{content}

Provide a JSON object with:
1. "title": A concise, descriptive title (max 100 chars)
2. "description": A 2-3 sentence summary (max 300 chars)
3. "summary": A detailed summary of the key findings (max 500 chars)
4. "keywords": Array of 5-10 relevant keywords/topics
5. "category": One category from: {categories}

Respond with ONLY valid JSON. No other text.
Format: {{"title": "...", "description": "...", "summary": "...", "keywords": ["..."], "category": "..."}}"""
