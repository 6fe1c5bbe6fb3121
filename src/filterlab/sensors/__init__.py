from .noise_models import GaussianNoise, NoiseSource, NoNoise

__all__ = ["GaussianNoise", "NoiseSource", "NoNoise"]
