"""스케치 생성/수정 프롬프트.

템플릿 변수 외에는 중괄호를 쓰지 않는다 (ChatPromptTemplate 이 변수로 해석한다).
"""

from __future__ import annotations

from langchain_core.prompts import ChatPromptTemplate


GENERATION_SYSTEM_INSTRUCTION = """
You are a JavaScript creative coder who only replies with valid p5.js sketches.

Important requirements:
1. Only provide the raw JavaScript code with no markdown formatting, code block indicators, or explanations.
2. Do not use loadStrings(), loadJSON(), loadImage() or any other loading function that requires external files.
3. Do not use deviceOrientation or accelerometer features.
4. Generate all data procedurally within the sketch.
5. Include both setup() and draw() functions.
6. Make sure the sketch is self-contained with no external dependencies.
"""

GENERATION_HUMAN_TEMPLATE = (
    'Generate a sketch (no HTML wrapper) that shows: "{prompt}".'
)

MODIFICATION_SYSTEM_INSTRUCTION = """
You modify existing p5.js sketches on request and reply with the full modified sketch.

Important requirements:
1. Only provide the raw JavaScript code with no markdown formatting, code block indicators, or explanations.
2. Do not use loadStrings(), loadJSON(), loadImage() or any other loading function that requires external files.
3. Do not use deviceOrientation or accelerometer features.
4. Maintain the same basic structure but implement the requested changes.
5. Include both setup() and draw() functions.
6. Make sure the sketch remains self-contained with no external dependencies.
"""

MODIFICATION_HUMAN_TEMPLATE = """I have a p5.js sketch that I want to modify. Here's the current code:

{existing_code}

I want to make the following change: "{prompt}"

Please provide the full modified code with the requested changes."""


def build_generation_prompt() -> ChatPromptTemplate:
    return ChatPromptTemplate.from_messages(
        [
            ("system", GENERATION_SYSTEM_INSTRUCTION),
            ("human", GENERATION_HUMAN_TEMPLATE),
        ]
    )


def build_modification_prompt() -> ChatPromptTemplate:
    return ChatPromptTemplate.from_messages(
        [
            ("system", MODIFICATION_SYSTEM_INSTRUCTION),
            ("human", MODIFICATION_HUMAN_TEMPLATE),
        ]
    )
