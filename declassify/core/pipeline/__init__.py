from .transformer import ComponentOutcome, DeclassifyTransformer, TransformResult

__all__ = ["ComponentOutcome", "DeclassifyTransformer", "TransformResult"]
