"""Controlled vocabulary tables.

Plain data only. ``taxonomy.py`` freezes these into the read-only
``DEFAULT_TAXONOMY`` container that filters and scoring receive.

Adding an industry tag: update INDUSTRY_LABELS and INDUSTRY_POSITIVE_KEYWORDS
at minimum. Tags missing from the keyword table degrade to neutral matching.
"""

TAXONOMY_VERSION = "2025.1"

# ============= ENTITY TYPES =============

ENTITY_TYPES = [
    "individual",
    "nonprofit",
    "small_business",
    "for_profit",
    "educational",
    "government",
    "tribal",
    "cooperative",
    "municipality",
]

ENTITY_TYPE_LABELS = {
    "individual": "Individual/Homeowner",
    "nonprofit": "Nonprofit Organization",
    "small_business": "Small Business",
    "for_profit": "For-Profit Business",
    "educational": "Educational Institution",
    "government": "Government Entity",
    "tribal": "Tribal Organization",
    "cooperative": "Cooperative",
    "municipality": "Municipality/Local Government",
}

ELIGIBILITY_TAGS = [
    "Individual",
    "Nonprofit",
    "Nonprofit 501(c)(3)",
    "Small Business",
    "For-Profit",
    "For-Profit Business",
    "Educational Institution",
    "Government",
    "Government Entity",
    "State Government",
    "Local Government",
    "Municipal",
    "Tribal",
    "Tribal Organization",
    "Native American",
    "Cooperative",
    "Agricultural Producer",
    "Farmer",
    "Rancher",
    "Beginning Farmer",
    "Veteran",
    "Veteran-Owned",
    "Woman-Owned",
    "Minority-Owned",
    "Disabled-Owned",
    "Socially Disadvantaged",
    "Public Housing Authority",
    "Faith-Based",
]

ENTITY_TO_ELIGIBILITY_TAGS = {
    "individual": ["Individual"],
    "nonprofit": ["Nonprofit", "Nonprofit 501(c)(3)", "Faith-Based"],
    "small_business": [
        "Small Business", "For-Profit", "For-Profit Business",
        "Agricultural Producer", "Farmer", "Rancher", "Beginning Farmer",
    ],
    "for_profit": ["For-Profit", "For-Profit Business", "Small Business"],
    "educational": ["Educational Institution", "Nonprofit"],
    "government": ["Government", "Government Entity", "State Government", "Local Government", "Municipal"],
    "tribal": ["Tribal", "Tribal Organization", "Native American", "Government Entity"],
    "cooperative": ["Cooperative", "Nonprofit", "Agricultural Producer"],
    "municipality": ["Municipal", "Local Government", "Government Entity", "Public Housing Authority"],
}

# Entity types that get the institution-only filter
SMALL_ENTITY_TYPES = ["individual", "nonprofit", "small_business", "cooperative"]

# Phrases in eligibility prose that rule an entity type out explicitly
ENTITY_EXCLUSION_PHRASES = {
    "individual": ["not for individuals", "organizations only", "entities only", "businesses only"],
    "for_profit": ["nonprofits only", "non-profit only", "501(c)(3) only", "not-for-profit only"],
    "small_business": ["large businesses", "corporations only", "enterprises only"],
    "nonprofit": ["for-profit only", "businesses only", "commercial entities"],
}

# ============= INSTITUTION-ONLY SIGNALS =============

INSTITUTION_ONLY_KEYWORDS = [
    "r1 research institution",
    "research institution only",
    "research institutions only",
    "institutions of higher education only",
    "accredited universities only",
    "university-affiliated",
    "university-based",
    "national laboratory",
    "academic medical center",
    "state agencies",
    "state agency only",
    "federally funded research and development center",
]

# Any of these rescues a grant that also lists institutions
SMALL_ENTITY_POSITIVE_KEYWORDS = [
    "small business",
    "individual farmer",
    "small farm",
    "beginning farmer",
    "family farm",
    "homeowner",
    "sole proprietor",
    "agricultural producer",
    "nonprofit organizations",
    "individuals may apply",
    "open to individuals",
    "individuals are eligible",
]

# ============= INDUSTRY / FOCUS AREAS =============

INDUSTRY_TAGS = [
    "agriculture",
    "arts_culture",
    "business",
    "climate",
    "community",
    "education",
    "health",
    "housing",
    "infrastructure",
    "nonprofit",
    "research",
    "technology",
    "workforce",
    "youth",
]

INDUSTRY_LABELS = {
    "agriculture": "Agriculture & Farming",
    "arts_culture": "Arts & Culture",
    "business": "Business & Entrepreneurship",
    "climate": "Climate & Environment",
    "community": "Community Development",
    "education": "Education",
    "health": "Health & Wellness",
    "housing": "Housing",
    "infrastructure": "Infrastructure",
    "nonprofit": "Nonprofit Operations",
    "research": "Research & Science",
    "technology": "Technology & Innovation",
    "workforce": "Workforce Development",
    "youth": "Youth & Families",
}

# Substring keywords. Two- and three-letter acronyms that occur inside common
# words ("it", "ai", "ev", "dot", "nea") are left out.
INDUSTRY_POSITIVE_KEYWORDS = {
    "agriculture": [
        "agriculture", "agricultural", "farm", "farmer", "farming", "ranch", "rancher",
        "rural development", "rural community", "rural business", "crop", "crops", "livestock",
        "cattle", "poultry", "usda", "food production", "food supply", "agribusiness", "soil",
        "irrigation", "harvest", "seed", "grain", "dairy", "organic farm", "conservation land",
        "land conservation", "pasture", "grazing", "horticulture", "commodity", "agricultural land",
        "farmland", "beginning farmer", "young farmer", "agricultural research", "food security",
        "vineyard", "orchard", "nursery", "aquaculture", "fishery", "forestry", "timber",
        "woodland", "agroforestry", "pollinator", "beekeeping", "cooperative extension", "nrcs",
        "farm service", "conservation reserve", "eqip",
    ],
    "arts_culture": [
        "the arts", "arts council", "art ", "arts and culture", "cultural heritage", "cultural center",
        "museum", "heritage", "creative", "humanities",
        "artistic", "theater", "theatre", "music", "visual arts", "performing arts",
        "endowment", "gallery", "exhibition", "literary", "dance company", "dancers",
        "symphony", "orchestra", "opera company", "opera house", "film", "media arts", "folk art",
        "craft fair", "handcraft",
        "preservation", "historic", "historical",
    ],
    "business": [
        "business", "entrepreneur", "commerce", "economic development", "sbir", "sttr",
        "small business", "startup", "commercialization", "sba", "export", "trade",
        "manufacturing", "industry", "enterprise", "venture", "micro-enterprise",
        "minority business", "women-owned", "veteran-owned", "disadvantaged business",
        "hub zone", "procurement", "wosb",
    ],
    "climate": [
        "climate", "environment", "environmental", "energy", "conservation", "sustainability",
        "epa", "renewable", "clean energy", "carbon", "emissions", "green", "solar",
        "wind energy", "geothermal", "recycling", "waste reduction", "pollution",
        "water quality", "air quality", "ecosystem", "habitat", "wildlife",
        "resilience", "adaptation", "mitigation", "electric vehicle",
    ],
    "community": [
        "community development", "community service", "neighborhood", "civic",
        "regional development", "block grant", "cdbg", "local government", "municipal",
        "town", "village", "revitalization", "placemaking", "main street",
        "economic development", "community foundation", "community action",
    ],
    "education": [
        "education", "school", "learning", "training", "academic", "student",
        "teacher", "curriculum", "educational", "k-12", "higher education", "university",
        "college", "classroom", "literacy", "stem education", "scholarship",
        "tuition", "early childhood", "head start", "preschool", "vocational",
    ],
    "health": [
        "health", "medical", "wellness", "nih", "clinical", "disease", "mental health",
        "healthcare", "hospital", "patient", "treatment", "therapy", "nursing",
        "public health", "medicine", "biomedical", "behavioral health", "substance abuse",
        "opioid", "telehealth", "rural health", "community health", "hrsa",
        "maternal", "child health", "nutrition", "food access",
    ],
    "housing": [
        "housing", "hud", "shelter", "homelessness", "affordable housing",
        "rental", "mortgage", "homeowner", "residential", "apartment", "dwelling",
        "low-income housing", "section 8", "lihtc", "home repair", "weatherization",
        "fair housing", "housing authority", "multifamily",
    ],
    "infrastructure": [
        "infrastructure", "transportation", "broadband", "water system", "transit",
        "highway", "bridge", "road", "utility", "sewer", "electric grid",
        "telecommunications", "fiber", "connectivity", "wastewater", "stormwater",
        "public works", "capital improvement", "fhwa",
    ],
    "nonprofit": [
        "nonprofit", "non-profit", "charitable", "philanthropy", "501c", "501(c)",
        "voluntary", "civil society", "ngo", "foundation", "giving", "charitable organization",
        "tax-exempt", "capacity building", "organizational development",
    ],
    "research": [
        "research", "science", "nsf", "study", "r&d", "scientific",
        "laboratory", "experiment", "investigation", "academic research", "basic research",
        "applied research", "innovation", "discovery", "nih", "darpa",
    ],
    "technology": [
        "technology", "tech", "digital", "software", "cyber", "artificial intelligence",
        "data", "computing", "information technology", "internet", "broadband",
        "telecommunications", "innovation", "machine learning", "blockchain",
        "cybersecurity", "saas", "cloud",
    ],
    "workforce": [
        "workforce", "job training", "employment", "career", "labor", "worker",
        "apprenticeship", "vocational", "skills training", "job placement",
        "unemployment", "retraining", "wioa", "workforce development",
        "career pathways", "work-based learning",
    ],
    "youth": [
        "youth", "children", "child", "family", "families", "juvenile", "teen",
        "adolescent", "young people", "kids", "afterschool", "after-school",
        "mentoring", "foster", "adoption", "child welfare", "head start",
    ],
}

# Present without any positive keyword for the same tag -> different industry
INDUSTRY_EXCLUSION_KEYWORDS = {
    "agriculture": [
        # medical research
        "cancer treatment", "cancer therapy", "chemotherapy", "tumor", "oncology",
        "hiv treatment", "aids research", "hiv/aids", "alzheimer", "dementia",
        "clinical trial", "drug trial", "pharmaceutical development", "drug development",
        "patient care", "hospital bed", "nursing care", "surgery", "surgical",
        "mental illness", "psychiatric", "addiction treatment", "substance abuse treatment",
        # software
        "cybersecurity", "cyber attack", "video game", "gaming", "social media platform",
        "app development", "mobile app", "website development",
        # performing and visual arts
        "museum exhibit", "art gallery", "theater production", "symphony", "opera company", "opera performance",
        "film festival", "dance performance", "visual arts exhibition",
        # urban
        "urban renewal", "metropolitan", "subway system", "city transit", "metro area",
        # defense
        "weapons system", "missile defense", "military combat", "armed forces equipment",
        # construction
        "fence repair", "fence construction", "fencing contract", "boundary fence",
    ],
    "health": [
        "crop production", "livestock management", "farm equipment", "irrigation system",
        "timber harvest", "mining operation", "oil extraction", "coal mining",
        "road construction", "bridge building", "highway maintenance",
    ],
    "technology": [
        "livestock", "crop yield", "farm equipment", "agricultural production",
        "nursing home", "patient care facility", "medical equipment maintenance",
        "art installation", "museum curation",
    ],
    "arts_culture": [
        "clinical trial", "drug development", "medical device", "patient outcome",
        "farm equipment", "livestock", "crop production", "agricultural chemicals",
        "road construction", "water treatment", "sewage",
    ],
}

# Grant category (as published by sources) -> industry tags
CATEGORY_TO_INDUSTRY = {
    "Agriculture": ["agriculture"],
    "Agriculture & Food": ["agriculture"],
    "Agricultural": ["agriculture"],
    "Rural Development": ["agriculture", "community"],
    "Arts": ["arts_culture"],
    "Arts & Culture": ["arts_culture"],
    "Humanities": ["arts_culture"],
    "Cultural Heritage": ["arts_culture"],
    "Business": ["business"],
    "Business & Entrepreneurship": ["business"],
    "Small Business": ["business"],
    "Economic Development": ["business", "community"],
    "Commerce": ["business"],
    "Environment": ["climate"],
    "Environmental": ["climate"],
    "Climate": ["climate"],
    "Energy": ["climate"],
    "Conservation": ["climate", "agriculture"],
    "Sustainability": ["climate"],
    "Community Development": ["community"],
    "Community": ["community"],
    "Regional Development": ["community"],
    "Education": ["education"],
    "Training": ["education", "workforce"],
    "Academic": ["education", "research"],
    "Health": ["health"],
    "Healthcare": ["health"],
    "Medical": ["health"],
    "Public Health": ["health"],
    "Mental Health": ["health"],
    "Housing": ["housing"],
    "Affordable Housing": ["housing"],
    "Infrastructure": ["infrastructure"],
    "Transportation": ["infrastructure"],
    "Broadband": ["infrastructure", "technology"],
    "Nonprofit": ["nonprofit"],
    "Philanthropy": ["nonprofit"],
    "Research": ["research"],
    "Science": ["research"],
    "Innovation": ["research", "technology"],
    "Technology": ["technology"],
    "IT": ["technology"],
    "Cybersecurity": ["technology"],
    "Workforce": ["workforce"],
    "Employment": ["workforce"],
    "Job Training": ["workforce"],
    "Youth": ["youth"],
    "Children": ["youth"],
    "Families": ["youth"],
}

# Looser category aliases used only by the industry-minimum hard filter
CATEGORY_ALIASES = {
    "agriculture": ["farm", "rural", "food", "usda", "agricultural", "agricu", "natural resources"],
    "arts_culture": ["arts", "cultural heritage", "humanities", "creative", "heritage", "museum"],
    "business": ["commerce", "economic", "entrepreneurship", "small business", "sbir", "sba"],
    "climate": ["environment", "energy", "conservation", "sustainability", "environmental", "epa"],
    "community": ["community development", "civic", "neighborhood", "regional", "cdbg"],
    "education": ["school", "academic", "learning", "training", "educational"],
    "health": ["medical", "healthcare", "wellness", "clinical", "nih", "hhs"],
    "housing": ["hud", "affordable housing", "shelter", "residential"],
    "infrastructure": ["transportation", "broadband", "water", "transit"],
    "nonprofit": ["charitable", "foundation", "ngo", "501c"],
    "research": ["science", "r&d", "scientific", "nsf"],
    "technology": ["tech", "digital", "cyber", "software", "innovation"],
    "workforce": ["employment", "job", "career", "labor"],
    "youth": ["children", "family", "families", "child", "juvenile", "acf"],
}

# ============= GEOGRAPHY =============

GEOGRAPHY_SCOPES = ["national", "regional", "state", "county", "city", "tribal"]

US_STATES = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "FL": "Florida", "GA": "Georgia", "HI": "Hawaii", "ID": "Idaho",
    "IL": "Illinois", "IN": "Indiana", "IA": "Iowa", "KS": "Kansas",
    "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi",
    "MO": "Missouri", "MT": "Montana", "NE": "Nebraska", "NV": "Nevada",
    "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico", "NY": "New York",
    "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio", "OK": "Oklahoma",
    "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah",
    "VT": "Vermont", "VA": "Virginia", "WA": "Washington", "WV": "West Virginia",
    "WI": "Wisconsin", "WY": "Wyoming", "DC": "District of Columbia",
    "PR": "Puerto Rico", "VI": "Virgin Islands", "GU": "Guam",
    "AS": "American Samoa", "MP": "Northern Mariana Islands",
}

# ============= FUNDING TYPES =============

FUNDING_TYPE_LABELS = {
    "grant": "Grant",
    "loan": "Loan",
    "forgivable_loan": "Forgivable Loan",
    "rebate": "Rebate",
    "tax_credit": "Tax Credit",
    "cost_share": "Cost-Share",
    "contract": "Contract",
    "award": "Award",
}

# ============= PURPOSE TAGS =============

PURPOSE_TAG_LABELS = {
    "equipment": "Equipment Purchase",
    "hiring": "Hiring/Personnel",
    "r_and_d": "Research & Development",
    "sustainability": "Sustainability/Conservation",
    "expansion": "Business Expansion",
    "training": "Training & Education",
    "working_capital": "Working Capital",
    "infrastructure": "Infrastructure",
    "marketing": "Marketing/Outreach",
    "technology": "Technology",
    "land_acquisition": "Land Acquisition",
    "construction": "Construction",
    "renovation": "Renovation/Repair",
    "operating": "Operating Expenses",
    "planning": "Planning/Feasibility",
    "technical_assistance": "Technical Assistance",
}

GOALS_TO_PURPOSE = {
    "equipment": ["equipment", "technology"],
    "expansion": ["expansion", "working_capital", "construction"],
    "sustainability": ["sustainability", "equipment", "renovation"],
    "workforce": ["hiring", "training"],
    "research": ["r_and_d", "technology", "planning"],
    "marketing": ["marketing", "expansion"],
    "facilities": ["construction", "renovation", "land_acquisition"],
    "operations": ["operating", "working_capital"],
    "planning": ["planning", "technical_assistance"],
}

# ============= CERTIFICATIONS =============

CERTIFICATION_LABELS = {
    "woman_owned": "Woman-Owned Business (WOSB)",
    "veteran_owned": "Veteran-Owned Business (VOSB)",
    "minority_owned": "Minority-Owned Business (MBE)",
    "disabled_owned": "Service-Disabled Veteran-Owned (SDVOSB)",
    "small_disadvantaged": "Small Disadvantaged Business (SDB)",
    "hub_zone": "HUBZone Certified",
    "8a_certified": "8(a) Certified",
    "organic": "USDA Organic Certified",
    "usda_certified": "USDA Certified",
    "b_corp": "B Corporation",
    "lgbtq_owned": "LGBTQ-Owned Business",
    "tribal_owned": "Tribally-Owned Business",
}

# ============= SIZE AND BUDGET =============

SIZE_BAND_LABELS = {
    "solo": "Solo (1 person)",
    "micro": "Micro (2-5 people)",
    "small": "Small (6-25 people)",
    "medium": "Medium (26-100 people)",
    "large": "Large (100+ people)",
}

BUDGET_RANGE_LABELS = {
    "under_50k": "Under $50,000",
    "50k_100k": "$50,000 - $100,000",
    "100k_250k": "$100,000 - $250,000",
    "250k_500k": "$250,000 - $500,000",
    "500k_1m": "$500,000 - $1M",
    "1m_5m": "$1M - $5M",
    "over_5m": "Over $5M",
}

BUDGET_TO_GRANT_SIZE = {
    "under_50k": ["micro", "small"],
    "50k_100k": ["micro", "small", "medium"],
    "100k_250k": ["small", "medium"],
    "250k_500k": ["small", "medium", "large"],
    "500k_1m": ["medium", "large"],
    "1m_5m": ["medium", "large"],
    "over_5m": ["large"],
}

# Budgets small enough that a large grant earns a warning
SMALL_BUDGETS = ["under_50k", "50k_100k"]

# Upper bounds (exclusive); anything at or above the last bound is "large"
GRANT_SIZE_BREAKPOINTS = [
    ("micro", 10_000),
    ("small", 50_000),
    ("medium", 250_000),
]

# ============= DATA QUALITY =============

QUALITY_THRESHOLDS = {
    "excellent": 0.9,
    "good": 0.7,
    "fair": 0.5,
    "poor": 0.3,
}
