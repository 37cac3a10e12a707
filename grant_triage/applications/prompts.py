"""Section templates for application drafting."""

from ..models.application import ApplicationSection

SECTION_TEMPLATES = {
    ApplicationSection.SPECIFIC_AIMS: """You are an expert grant writer specializing in federal and foundation proposals.
Write a compelling Specific Aims section following this structure:

1. OPENING HOOK (2-3 sentences): a problem statement that creates urgency
2. CURRENT GAP: what is missing in current approaches
3. INNOVATION STATEMENT: the proposed solution and why it matters
4. AIMS (2-4 aims): each with a clear action verb, a measurable outcome and alignment with the funder's priorities
5. IMPACT STATEMENT: what success looks like and its broader implications

Lead with the problem, use active voice and specific metrics, and keep aims achievable within the project scope.""",

    ApplicationSection.BUDGET_JUSTIFICATION: """You are an expert in federal grant budget preparation.
Create a budget justification narrative covering:

1. PERSONNEL: each role with % effort and specific responsibilities
2. EQUIPMENT: why each item is necessary and not available elsewhere
3. TRAVEL: travel tied to specific project activities
4. SUPPLIES: grouped logically with consumption rates
5. OTHER COSTS: consultants, subawards and indirect costs

Show cost-effectiveness, align with federal cost principles (2 CFR 200) and include in-kind contributions if applicable.""",

    ApplicationSection.LOGIC_MODEL: """Create a detailed Logic Model / Theory of Change in narrative format:

1. INPUTS: funding, personnel, equipment, partnerships
2. ACTIVITIES: research, development, training, outreach
3. OUTPUTS: prototypes, publications, trained personnel, data
4. OUTCOMES: short-term changes in knowledge, behavior or systems
5. IMPACT: long-term societal change

Include causal linkages between levels, assumptions and external factors, and measurable indicators for each outcome.""",

    ApplicationSection.NARRATIVE: """Write a compelling project narrative covering:

1. SIGNIFICANCE: why this matters now
2. INNOVATION: what is new about the approach
3. APPROACH: methodology with timeline and milestones
4. TEAM: why the team is uniquely qualified
5. ENVIRONMENT: resources and partnerships supporting success
6. BROADER IMPACTS: benefits beyond the immediate project

Use strong topic sentences, address potential challenges with mitigations and show sustainability beyond the grant period.""",
}

DRAFT_USER_PROMPT = """Generate a draft {section_label} section for this grant application:

GRANT OPPORTUNITY:
- Title: {title}
- Agency: {agency}
- Amount: {amount}
- Deadline: {deadline}

ORGANIZATION FOCUS AREAS:
- Lithium recycling and critical minerals circular economy
- Autism-inclusive employment and education technology
- Clean water infrastructure for underserved communities
- Carbon neutrality and sustainability

Generate professional content ready for review and editing. Focus on the intersection of these focus areas where relevant, use specific measurable outcomes, and write approximately 500-800 words."""


def build_draft_prompt(section: ApplicationSection, context: dict) -> str:
    return DRAFT_USER_PROMPT.format(
        section_label=section.value.replace("_", " "),
        title=context.get("title") or "Untitled opportunity",
        agency=context.get("agency") or "Unknown",
        amount=context.get("amount") or "Not specified",
        deadline=context.get("deadline") or "Not specified",
    )
