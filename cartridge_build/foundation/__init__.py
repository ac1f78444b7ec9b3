"""Leaf helpers with no project knowledge: YAML config loading and logging setup."""
