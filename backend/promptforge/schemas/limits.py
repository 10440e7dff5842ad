"""Field limits shared by request schemas and the analysis validator."""

PROMPT_TITLE_MAX = 200
PROMPT_DESCRIPTION_MAX = 3000
PROMPT_CONTENT_MAX = 200_000
PROMPT_CONTENT_AI_ANALYSIS_MAX = 50_000

TAG_MAX_COUNT = 20
TAG_MAX_LENGTH = 50
TAG_PATTERN = r"^[a-zA-Z0-9\s\-_]+$"

VARIABLE_MAX_COUNT = 50
VARIABLE_NAME_MAX = 100
VARIABLE_HELP_MAX = 500
VARIABLE_DEFAULT_MAX = 1000
VARIABLE_PATTERN_MAX = 200
VARIABLE_OPTIONS_MAX_COUNT = 50
VARIABLE_OPTION_MAX_LENGTH = 100

RENDER_VALUE_MAX = 5000

AI_ROLE_MAX = 500
AI_OBJECTIVES_MAX_COUNT = 20
AI_OBJECTIVE_MAX_LENGTH = 500
AI_STEPS_MAX_COUNT = 50
AI_STEP_MAX_LENGTH = 500
AI_CATEGORIES_MAX_COUNT = 20
AI_CATEGORY_MAX_LENGTH = 50
AI_SECTION_MAX_LENGTH = 10_000
AI_TEMPLATE_MAX_LENGTH = 100_000
