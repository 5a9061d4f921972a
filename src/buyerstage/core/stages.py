DEFAULT_STAGES = [
    {
        "stage_number": 0,
        "name": "Readiness & Expectations",
        "objective": "Establish authority and trust through a structured consultation",
        "completion_criteria": ["Complete consultation", "Acknowledge expectations"],
        "next_actions": ["Schedule consultation", "Create buyer strategy brief"],
        "icon": "🎯",
    },
    {
        "stage_number": 1,
        "name": "Financing & Capability",
        "objective": "Confirm buying power and make buyer credible in market",
        "completion_criteria": ["Submit pre-approval docs", "Confirm budget"],
        "next_actions": ["Initiate pre-approval", "Define budget bands"],
        "icon": "💰",
    },
    {
        "stage_number": 2,
        "name": "Market Intelligence & Search Setup",
        "objective": "Educate buyer quickly, build a smart pipeline",
        "completion_criteria": ["Review market intelligence", "Confirm touring cadence"],
        "next_actions": ["Generate neighborhood brief", "Set up search strategy"],
        "icon": "🏘️",
    },
    {
        "stage_number": 3,
        "name": "Touring, Filtering & Convergence",
        "objective": "Maximize in-person evaluations and build shortlist",
        "completion_criteria": ["Tour properties", "Provide feedback"],
        "next_actions": ["Schedule showings", "Update property rankings"],
        "icon": "🏠",
    },
    {
        "stage_number": 4,
        "name": "Offer Strategy & Submission",
        "objective": "Craft competitive offers with strategic terms",
        "completion_criteria": ["Review offer terms", "Approve submission"],
        "next_actions": ["Analyze comps", "Draft offer strategy"],
        "icon": "📋",
    },
    {
        "stage_number": 5,
        "name": "Negotiation & Contract",
        "objective": "Navigate counter-offers and secure favorable terms",
        "completion_criteria": ["Review contract terms", "Sign agreement"],
        "next_actions": ["Analyze counter-offers", "Prepare negotiation strategy"],
        "icon": "🤝",
    },
    {
        "stage_number": 6,
        "name": "Due Diligence & Inspections",
        "objective": "Coordinate inspections and review disclosures",
        "completion_criteria": ["Review inspection reports", "Approve repair negotiations"],
        "next_actions": ["Schedule inspections", "Draft repair requests"],
        "icon": "🔍",
    },
    {
        "stage_number": 7,
        "name": "Appraisal & Lending",
        "objective": "Ensure property appraises at value and finalize loan",
        "completion_criteria": ["Submit loan documents", "Review appraisal results"],
        "next_actions": ["Prepare appraisal brief", "Track loan conditions"],
        "icon": "🏦",
    },
    {
        "stage_number": 8,
        "name": "Final Walkthrough & Preparation",
        "objective": "Verify property condition and prepare for closing",
        "completion_criteria": ["Complete walkthrough", "Arrange utilities"],
        "next_actions": ["Schedule walkthrough", "Create utility transfer checklist"],
        "icon": "👁️",
    },
    {
        "stage_number": 9,
        "name": "Closing & Post-Close",
        "objective": "Complete transaction and transition to ownership",
        "completion_criteria": ["Sign documents", "Receive keys"],
        "next_actions": ["Review closing docs", "Generate post-close guidance"],
        "icon": "🎉",
    },
]
