"""
AI Image Detector Package.

A small web service that scores how likely an uploaded image is
AI-generated. Analysis is delegated to external multimodal models, with a
deterministic heuristic as the last resort.

Modules:
- main: FastAPI application and endpoints
- detector: Provider fallback chain
- providers: OpenRouter / xAI vision clients
- extraction: JSON recovery from free-form model text
- heuristic: Deterministic fallback scorer
- scoring: Score clamping, labels and display verdicts
- preprocess: Image decoding, downscaling and base64 helpers
- schemas: Pydantic request/response models
- config: Application configuration
- client: Command-line upload client
"""

__version__ = "1.0.0"
