from __future__ import annotations

PROMPT_VERSION = "2025-02-01"

USER_PROMPT_PREFIX = "Parse the following climate project description into structured JSON:\n\n"

_OUTPUT_SCHEMA = """\
interface ProjectData {
    title?: string;
    location?: string;
    area?: string;
    status?: string;
    feasibility_score?: number;
    difficulty_score?: number;
    risk_score?: number;
    methodology?: string;
    start_date?: string;
    environmental_asset_id?: string;
    annual_credit_potential?: number;
    buffer_allocation?: number;
    saleable_credits?: number;
    sdgs?: string[];
    certifications?: string[];
    analysis?: string;
    core_data?: Record<string, string>;
    potential_buyers?: Record<string, string>;
    price_potential?: Record<string, string>;
    commentary?: Record<string, string>;
}"""

_INSTRUCTIONS = """\
1. JSON output only
   - Produce only valid JSON. No Markdown, code fences or explanations outside the JSON object.
   - Top-level property names must match the interface exactly.
2. Deduction
   - Use logical deduction and your knowledge of carbon markets to infer missing or unclear data.
   - When certainty is not possible, make the most probable assumption and state the reasoning.
   - Justify every deduction in the "analysis" and "commentary" sections.
3. Market context
   - Identify the three most relevant methodologies and compare them.
   - Estimate current carbon credit prices for comparable projects and project future prices.
   - Identify potential buyers, market trends and relevant regulation for current and future years.
   - Write an "analysis" of 150-200 words covering assumptions, deductions, supporting data and
     market context.
   - Fill "commentary" with one explanation per field stating its source and reasoning.
4. Numbers
   - Convert all numeric fields to numbers. When given a range, use the most likely value, justify
     it and give the range as an error bar in "core_data".
   - Give "price_potential" values as price ranges with reasoning.
5. Certifications and SDGs
   - Include every certification and SDG that is mentioned or clearly implied.
6. Environmental asset id
   - If "environmental_asset_id" is not given, derive a probable id from project details and market
     conventions, or set it to "on request" and explain why.
7. Core data
   - Record every missing or ambiguous essential value in "core_data" with notes, possible data
     sources and error bar ranges, and add a matching "commentary" entry for each key.
8. Methodology and registry
   - Suggest the most appropriate methodologies and registries and justify the choice.
9. Projections
   - "potential_buyers" and "price_potential" must contain one entry per year for 2025-2029,
     keyed by the year as a string, each with a "commentary" rationale."""

_TASK = """\
You will receive a single block of text describing a climate or carbon project. Your task is to:
1. Parse the text into the ProjectData JSON format.
2. Provide detailed, justified deductions in "analysis" and "commentary".
3. Note ambiguous or missing essential fields in "core_data" with error bar ranges where possible.
4. Add "potential_buyers" and "price_potential" projections for 2025-2029.
5. Return only the final JSON object."""

_EXAMPLE_INPUT = (
    "The Verde initiative in northern Brazil involves approximately 40k hectares. "
    "Implementation expected next year with Gold Standard certification being pursued. "
    "Indigenous communities will help monitor. Estimated carbon sequestration around 15-20 "
    "thousand units per annum, with standard buffers applied. Reference code VRD-2023."
)

_EXAMPLE_OUTPUT = """\
{
  "title": "Verde Initiative",
  "location": "Northern Brazil",
  "area": "40000 ha",
  "status": "Planning",
  "feasibility_score": 8,
  "difficulty_score": 6,
  "risk_score": 3,
  "methodology": "AR-ACM0003 (Gold Standard), VM0007 (Verra), CAR10.0 (CAR)",
  "start_date": "2024-03-15",
  "environmental_asset_id": "VRD-2024-001",
  "annual_credit_potential": 18000,
  "buffer_allocation": 10,
  "saleable_credits": 16200,
  "sdgs": ["SDG 13", "SDG 15"],
  "certifications": ["Gold Standard"],
  "analysis": "The Verde Initiative is a reforestation project in Northern Brazil in advanced planning, targeting 40,000 hectares. A yield of 18,000 credits per year is used, the midpoint of the stated 15,000-20,000 range adjusted for comparable projects. AR-ACM0003 under Gold Standard is preferred over VM0007 and CAR10.0 because certification is already being pursued. Comparable credits currently trade at $15-$25 with rising demand. Likely buyers are large corporations, ESG funds, airlines and governments. The asset id VRD-2024-001 follows the reference code and market conventions. SDG 13 and SDG 15 apply. Feasibility is high thanks to community monitoring, and certification mitigates risk. The start date is projected for next year.",
  "core_data": {
    "environmental_asset_id": "VRD-2024-001 (generated from the project code; error bar: N/A)",
    "annual_credit_potential": "18000 (range: 16000-20000)",
    "buffer_allocation": "10% (range: 9%-11%, industry standard)",
    "saleable_credits": "16200 (after 10% buffer; range: 14400-18000)"
  },
  "potential_buyers": {
    "2025": "Large Corporations, ESG Funds, Airlines",
    "2026": "Large Corporations, ESG Funds, Airlines, Governments",
    "2027": "Large Corporations, ESG Funds, Airlines, Governments, Investment Firms",
    "2028": "Large Corporations, ESG Funds, Airlines, Governments, Investment Firms, Carbon Exchanges",
    "2029": "Large Corporations, ESG Funds, Airlines, Governments, Investment Firms, Carbon Exchanges, Retail Investors"
  },
  "price_potential": {
    "2025": "$18-$28 (comparable reforestation projects)",
    "2026": "$20-$32 (upward market trend)",
    "2027": "$23-$38 (rising demand)",
    "2028": "$27-$45 (regulatory developments)",
    "2029": "$30-$55 (anticipated market growth)"
  },
  "commentary": {
    "title": "Extracted directly from the text.",
    "location": "Stated as northern Brazil.",
    "area": "Derived from 'approximately 40k hectares'.",
    "status": "Planning, since implementation is expected next year.",
    "feasibility_score": "8 due to community involvement and Gold Standard certification.",
    "difficulty_score": "6 given project scale and complexity.",
    "risk_score": "3 as certification and community support reduce risk.",
    "methodology": "AR-ACM0003 preferred under Gold Standard; VM0007 and CAR10.0 as alternatives.",
    "start_date": "Projected for next year.",
    "environmental_asset_id": "Generated from the reference code VRD-2023.",
    "annual_credit_potential": "Midpoint of the stated range.",
    "buffer_allocation": "Standard 10% buffer assumed.",
    "saleable_credits": "Annual credit potential minus the buffer.",
    "sdgs": "SDG 13 and SDG 15 follow from the project type.",
    "certifications": "Gold Standard is mentioned explicitly.",
    "potential_buyers": "Each year adds sectors as market interest widens.",
    "price_potential": "Ranges follow comparable projects and expected regulatory impact."
  }
}"""


def build_system_prompt(*, include_example: bool = True) -> str:
    """Return the fixed instruction prompt, optionally with the worked example."""

    sections = [
        "You are a climate project data parser. Parse unstructured text describing a climate "
        "or carbon project into a detailed, accurate JSON object that follows the TypeScript "
        "interface below.",
        f"Interface definition:\n```typescript\n{_OUTPUT_SCHEMA}\n```",
        f"Instructions:\n{_INSTRUCTIONS}",
        f"Task:\n{_TASK}",
    ]
    if include_example:
        sections.append(
            f"Example\n\nUser input:\n\n{_EXAMPLE_INPUT}\n\nJSON response:\n\n{_EXAMPLE_OUTPUT}"
        )
    sections.append(f"Prompt version: {PROMPT_VERSION}")
    return "\n\n".join(sections)


def build_project_prompts(*, text: str, include_example: bool = True) -> tuple[str, str]:
    """Create (system_prompt, user_prompt) for project extraction."""

    return build_system_prompt(include_example=include_example), f"{USER_PROMPT_PREFIX}{text}"
