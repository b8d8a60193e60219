from .scorer import compute_score, shared_interests
