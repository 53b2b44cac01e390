"""Leitner-style flashcard trainer: learning-phase scheduler and lesson store."""
