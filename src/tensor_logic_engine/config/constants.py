"""
Engine constants.

Dimensions and limits are part of the host contract: the host integration
passes plain buffers sized by these values.
"""

# Dimensions
EMBED_DIM = 64
"""Atom and truth-value embedding dimension."""

HIDDEN_DIM = 128
"""Projection dimension of the attention layer and rule hidden state."""

# Capacity limits
MAX_ATOMS = 4096
MAX_RULES = 512
MAX_BATCH = 32
MAX_PREMISES = 16

# Truth values
DEFAULT_STRENGTH = 0.5
DEFAULT_CONFIDENCE = 0.1
EVIDENCE_EPS = 1e-10
"""Keeps evidence finite when confidence == 1."""

# Rules
DEFAULT_RULE_WEIGHT = 1.0
DEFAULT_RULE_CONFIDENCE = 0.8
RULE_WEIGHT_MIN = 0.0
RULE_WEIGHT_MAX = 2.0
PREMISE_WEIGHT_FLOOR = 0.01
RULE_WEIGHT_STEP = 0.01
PREMISE_WEIGHT_STEP = 0.001
CONCLUSION_EMBED_MIX = 0.1
"""Share of the tanh premise mix blended into the conclusion embedding."""

# Retrieval and inference
TOP_K = 10
PREMISE_MATCH_THRESHOLD = 0.5
UNIFY_THRESHOLD = 0.7
SATISFACTION_THRESHOLD = 0.9
TRAIN_MAX_STEPS = 5
UNIFY_MAX_DEPTH = 32

# Attention
DEFAULT_TEMPERATURE = 1.0
ATTENTION_GRAD_SCALE = 0.1

# Adam
ADAM_BETA1 = 0.9
ADAM_BETA2 = 0.999
ADAM_EPS = 1e-8
ADAM_LR = 0.001

# Store learning state (read by training, not used by the algebra)
STORE_LEARNING_RATE = 0.001
STORE_MOMENTUM = 0.9
