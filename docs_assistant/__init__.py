"""
Documentation assistant: retrieval-augmented answers over a markdown knowledge base.
"""
