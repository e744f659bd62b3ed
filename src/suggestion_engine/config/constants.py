"""Fixed constants that are not exposed as tunable settings."""

GENERATOR_VERSION = "suggestion-engine-v2.4.0"
CLASSIFICATION_MODEL = "rule-based-v2"
TYPE_MODEL = "rule-based-v2"
SYNTHESIS_MODEL = "template-v2"
VALIDATION_MODELS = {"v2": "anti-vacuity-v2", "v3": "evidence-sanity-v3"}

# Debug preview lengths
HEADING_PREVIEW_CHARS = 80
CANDIDATE_PREVIEW_CHARS = 160
NOTE_PREVIEW_CHARS = 200
EVIDENCE_PREVIEW_CHARS = 120
MAX_DEBUG_PAYLOAD_BYTES = 512 * 1024

# Consolidation
CONSOLIDATION_MIN_CANDIDATES = 3
CONSOLIDATION_MIN_BULLETS = 3
CONSOLIDATION_MAX_HEADING_LEVEL = 3
CONSOLIDATION_MAX_SPANS = 4
CONSOLIDATION_MAX_MERGED_SPANS = 5
CONSOLIDATION_MAX_BODY_CHARS = 320

# Titles
TITLE_OBJECT_MAX_CHARS = 50
TIMELINE_TITLE_MAX_CHARS = 60
SEMANTIC_TITLE_MAX_CHARS = 60

# Segmentation
PLAIN_HEADING_MAX_CHARS = 40
GENERAL_SECTION_HEADING = "General"

# Dense paragraph detection
DENSE_PARAGRAPH_MIN_CHARS = 250

# Topic isolation
TOPIC_SPLIT_MIN_BULLETS = 5
TOPIC_SPLIT_MIN_CHARS = 500
TOPIC_SPLIT_MIN_ANCHORS = 2

# Scoring
HIGH_CONFIDENCE_THRESHOLD = 0.8
FALLBACK_PLACEHOLDER_SCORE = 0.3
PII_RISK_CONFIDENCE = 0.85

# Evaluation
SENSITIVITY_DROP_RATIO = 0.3
MINHASH_NUM_PERM = 128
NEAR_DUP_SIMILARITY_THRESHOLD = 0.8
