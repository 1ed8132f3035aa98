"""Generative AI client layer (Gemini image models and Veo video)."""
