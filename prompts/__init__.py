"""
prompts/ — LLM prompt templates for the research archive.

One file per component. Import the prompt constant you need:

    from prompts.enhancer import ENHANCE_PROMPT
"""
