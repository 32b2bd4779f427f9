"""
Demo Scripts
============

The eight scripted steps of the Finvisor walkthrough, following one student
(Sarah Chen, Stanford) from intake to the operator dashboard.
"""

from typing import Any, Dict, List, Tuple

from .script import Phase, ScriptItem, StepScript

GREEN = "#34d399"
AMBER = "#fbbf24"
ACCENT = "#22d3ee"
ACCENT_ALT = "#a78bfa"
MUTED = "rgba(255,255,255,0.45)"

STEP_LABELS = [
    "Finnie Chat",
    "Upload Docs",
    "Gap Strategy",
    "Research",
    "Generate Appeal",
    "Auto-Submit",
    "Live Advisor",
    "Dashboard",
]

SUBMISSION_CONFIRMATION = "SFA-2026-04821"

DEMO_CONVO: List[Tuple[str, str]] = [
    (
        "bot",
        "Hey! I'm Finnie, your financial aid advisor. 💙 I'm here to help you build the "
        "strongest possible appeal. First — what school are you attending?",
    ),
    ("user", "Stanford University"),
    (
        "bot",
        "Great choice! Stanford has a strong financial aid program, and they do review appeals "
        "seriously. What's your current total aid package amount?",
    ),
    ("user", "They offered me $45,000 but tuition is $62,000"),
    (
        "bot",
        "So you have a gap of about $17,000 — that's significant. Has anything changed in your "
        "family's financial situation recently? This could be job loss, medical expenses, "
        "divorce, or anything that affects income.",
    ),
    (
        "user",
        "My mom lost her job in October and our income dropped a lot. Plus she's paying "
        "$1800/mo for COBRA insurance now",
    ),
    (
        "bot",
        "I'm really sorry to hear about your mom's job loss. That sounds incredibly stressful, "
        "and I want you to know — this is exactly the kind of circumstance that financial aid "
        "offices take very seriously. 💛\n\nA sudden income drop + high COBRA costs gives us a "
        "very strong foundation. I have a few more questions to strengthen your case:\n\n"
        "• Did you have to make any housing changes?\n"
        "• Do you have siblings who are also in school?\n"
        "• Has your family taken on any new debt?",
    ),
    (
        "user",
        "Yes we had to move to a smaller place and my two younger siblings had to switch "
        "schools. No new debt though",
    ),
    (
        "bot",
        "That's really helpful context. Housing displacement plus impact on siblings adds "
        "emotional weight to your appeal.\n\nHere's what I've gathered so far:\n\n"
        "📋 **Your Appeal Profile**\n"
        "• School: Stanford University\n"
        "• Current aid: $45,000 | Gap: ~$17,000\n"
        "• Trigger: Parent job loss (Oct 2025)\n"
        "• Income drop: ~34%\n"
        "• Added burden: COBRA ($1,800/mo)\n"
        "• Housing: Forced relocation\n"
        "• Family impact: 2 siblings displaced\n\n"
        "I'm feeling really good about this appeal. Ready to move to document upload so I can "
        "analyze your actual numbers?",
    ),
]

PARSED_DOCUMENTS: List[Dict[str, Any]] = [
    {
        "type": "W-2 Form",
        "fields": [
            {"key": "Gross Income", "value": "$62,450", "flag": False},
            {"key": "Federal Tax Withheld", "value": "$8,340", "flag": False},
            {"key": "Filing Status", "value": "Head of Household", "flag": False},
            {"key": "Employer", "value": "Terminated Oct 2025", "flag": True},
            {"key": "YoY Income Change", "value": "−34.2%", "flag": True},
        ],
    },
    {
        "type": "FAFSA / Aid Letter",
        "fields": [
            {"key": "EFC (Expected Family Contribution)", "value": "$12,800", "flag": False},
            {"key": "Federal Pell Grant", "value": "$3,200", "flag": False},
            {"key": "Institutional Grant", "value": "$32,000", "flag": False},
            {"key": "Subsidized Loan", "value": "$5,500", "flag": False},
            {"key": "Unmet Need", "value": "$17,300", "flag": True},
            {"key": "Total Package", "value": "$45,000", "flag": False},
        ],
    },
]

REASONING: List[Tuple[str, str, str]] = [
    ("Checking income change...", "✅ Income outdated — 34% drop detected", GREEN),
    ("Evaluating medical expenses...", "✅ COBRA $1,800/mo = $21,600/yr burden", GREEN),
    ("Scanning competing offers...", "⏭ No competing offer on file — skip", MUTED),
    ("Assessing merit leverage...", "✅ 3.8 GPA + research — merit angle viable", GREEN),
    ("Dependency override check...", "⏭ Not applicable — standard dependency", MUTED),
    ("Housing hardship analysis...", "✅ Forced relocation — strong hardship signal", GREEN),
    ("Building negotiation plan...", "🔥 4 strong appeal vectors identified", AMBER),
]

NEGOTIATION_PLAN = [
    "Lead with income documentation — 34% drop is the strongest vector",
    "Quantify COBRA burden ($21,600/yr) as concrete additional hardship",
    "Include housing displacement narrative for emotional resonance",
    "Mention academic merit (3.8 GPA) to frame as investment worth protecting",
]

RESEARCH: List[Tuple[str, str, str]] = [
    (
        "Stanford average financial aid package 2025",
        "Average need-based grant: $59,400. 70% of students receive aid.",
        "Stanford Financial Aid Office",
    ),
    (
        "Financial aid appeal success rate top universities",
        "Appeals with documented income changes have 40-60% success rate at top-20 schools.",
        "Journal of Student Financial Aid",
    ),
    (
        "COBRA insurance average cost 2025",
        "Average COBRA premium: $1,700/mo for family coverage. Above $1,500 qualifies as "
        "'significant burden' in most appeal frameworks.",
        "KFF Health Insurance Report",
    ),
    (
        "Stanford financial aid appeal policy language",
        "Stanford's SAR (Special Circumstances Review) allows mid-year reassessment for "
        "'significant change in family finances.'",
        "Stanford SAR Documentation",
    ),
    (
        "Peer institution aid comparison Ivy+ schools",
        "Harvard avg grant: $59,076 | Yale: $62,250 | Princeton: $60,500 — Stanford's $45K "
        "offer is below peer median.",
        "IPEDS Data 2024-25",
    ),
]

LETTER = [
    "Dear Stanford University Office of Financial Aid,",
    "",
    "I am writing to request a Special Circumstances Review of my financial aid package for "
    "the 2025–2026 academic year. A significant and unforeseen change in my family's financial "
    "situation has created a substantial gap between our demonstrated need and my current award.",
    "",
    "In October 2025, my mother — our household's primary earner — experienced an unexpected job "
    "termination. As documented in the attached W-2, this resulted in a 34.2% decrease in "
    "household income, from $95,800 to $62,450. This figure no longer reflects our family's "
    "ability to contribute to educational costs.",
    "",
    "The financial strain extends well beyond lost wages. We now carry $1,800 per month "
    "($21,600 annually) in COBRA health insurance premiums — a figure that exceeds the national "
    "family average of $1,700/month (KFF, 2025). Additionally, our family was forced to relocate "
    "to more affordable housing, displacing my two younger siblings from their schools.",
    "",
    "I would also respectfully note that my current institutional grant of $32,000 falls below "
    "the peer-institution median. According to IPEDS 2024–25 data, comparable need-based grants "
    "at Harvard ($59,076), Yale ($62,250), and Princeton ($60,500) significantly exceed my "
    "current award. Stanford's own published average need-based grant of $59,400 further "
    "illustrates this gap.",
    "",
    "Throughout these challenges, I have maintained a 3.8 GPA and continued my research "
    "contributions. I am deeply committed to my education at Stanford and believe a revised "
    "assessment of my family's financial circumstances will confirm eligibility for additional "
    "need-based support.",
    "",
    "I have attached supporting documentation including my mother's W-2, proof of unemployment, "
    "COBRA enrollment confirmation, and our current lease agreement. I am available to provide "
    "any additional materials your office may require.",
    "",
    "Thank you for your time and careful consideration.",
    "",
    "Sincerely,",
    "Sarah Chen",
    "Stanford University, Class of 2028",
]

ACTIONS: List[Tuple[str, str]] = [
    ("🌐", "Opening Stanford financial aid portal..."),
    ("🔑", "Authenticating with student credentials..."),
    ("📝", 'Navigating to "Special Circumstances Review" form...'),
    ("✍️", "Filling in personal & financial details..."),
    ("📎", "Attaching appeal letter PDF + W-2 + supporting docs..."),
    ("🔍", "Reviewing submission for completeness..."),
    ("🚀", "Submitting appeal — confirmation received!"),
]

ADVISOR_SCRIPT: List[Tuple[str, str]] = [
    (
        "Advisor",
        "Sarah, great to connect. I've reviewed everything Finnie compiled — your appeal is "
        "already submitted, so let's talk strategy for the follow-up.",
    ),
    ("Student", "Thank you! I'm a bit nervous about waiting. Is there anything else I should do?"),
    (
        "Advisor",
        "Great question. I'd recommend sending a brief follow-up email to your aid officer in "
        "about a week. Reference your confirmation number and express continued interest.",
    ),
    ("Student", "Okay, that makes sense. What if they come back with only a partial increase?"),
    (
        "Advisor",
        "That's actually common. If they offer a partial increase, we can do a second round "
        "citing the peer data — your package is still below the Ivy+ median even after a bump.",
    ),
]

ADVISOR_INSIGHTS = [
    f"📋 AI Summary: Student submitted appeal #{SUBMISSION_CONFIRMATION}",
    "💡 Advisor recommends: Follow-up email in 7 days",
    "⚡ Strategy note: Peer comparison data reserved for potential round 2",
    "🎯 Action item: Prepare counter-offer template if partial increase",
]

DASHBOARD_STATS = [
    ("Appeals Filed", "1,247", ACCENT),
    ("Success Rate", "68%", GREEN),
    ("Avg Aid Increase", "$8,420", AMBER),
    ("Revenue (MRR)", "$12.4k", ACCENT_ALT),
]

PRICING_TIERS: List[Dict[str, Any]] = [
    {
        "name": "Basic",
        "price": "$9",
        "features": ["AI intake conversation", "Document parsing", "Gap analysis", "Basic appeal letter"],
        "popular": False,
    },
    {
        "name": "Pro",
        "price": "$29",
        "features": ["Everything in Basic", "Research citations", "Auto-submission agent", "Zoom advisor session"],
        "popular": True,
    },
    {
        "name": "Premium",
        "price": "$49",
        "features": ["Everything in Pro", "Counter-offer templates", "Multi-round strategy", "Priority advisor access"],
        "popular": False,
    },
]

SPONSORS = [
    ("Anthropic (Claude)", "Reasoning + Generation"),
    ("OpenAI", "Creative + Intake"),
    ("Zoom", "Live Advisor"),
    ("Render", "Backend Infra"),
    ("Perplexity", "Research Agent"),
    ("Browserbase", "Auto-Submit"),
    ("Modal", "Scalable Compute"),
    ("Vercel", "Frontend Deploy"),
    ("Fetch.ai", "Payment Agents"),
    ("Visa", "Commerce Layer"),
]

# Timings in milliseconds
TYPING_BASE_MS = 1200
TYPING_PER_CHAR_MS = 4
USER_REPLY_MS = 800
MESSAGE_GAP_MS = 400
PARSE_MS = 2800
THINK_MS = 1200
REASONING_GAP_MS = 300
SEARCH_MS = 1800
SEARCH_GAP_MS = 200
BLANK_LINE_MS = 80
LINE_BASE_MS = 150
LINE_PER_CHAR_MS = 2
ACTION_MS = 1600
ACTION_GAP_MS = 200
CONNECT_MS = 2500
TRANSCRIPT_INTERVAL_MS = 3000
INSIGHT_OFFSET_MS = 600
HANGUP_MS = 1500


def chat_script() -> StepScript:
    items = []
    for role, text in DEMO_CONVO:
        if role == "bot":
            phases = [
                Phase(name="typing"),
                Phase(name="revealed", delay_ms=TYPING_BASE_MS + TYPING_PER_CHAR_MS * len(text)),
            ]
        else:
            phases = [Phase(name="revealed", delay_ms=USER_REPLY_MS)]
        items.append(
            ScriptItem(kind="message", speaker=role, text=text, phases=phases, settle_ms=MESSAGE_GAP_MS)
        )
    return StepScript(index=0, label=STEP_LABELS[0], items=items)


def upload_script() -> StepScript:
    return StepScript(
        index=1,
        label=STEP_LABELS[1],
        items=[
            ScriptItem(
                kind="document",
                text=document["type"],
                data=document,
                phases=[Phase(name="parsing"), Phase(name="parsed", delay_ms=PARSE_MS)],
            )
            for document in PARSED_DOCUMENTS
        ],
    )


def strategy_script() -> StepScript:
    items = [
        ScriptItem(
            kind="reasoning",
            text=label,
            result=result,
            color=color,
            phases=[Phase(name="thinking"), Phase(name="done", delay_ms=THINK_MS)],
            settle_ms=REASONING_GAP_MS,
        )
        for label, result, color in REASONING
    ]
    items.extend(ScriptItem(kind="plan", text=line, color=AMBER) for line in NEGOTIATION_PLAN)
    return StepScript(index=2, label=STEP_LABELS[2], items=items)


def research_script() -> StepScript:
    return StepScript(
        index=3,
        label=STEP_LABELS[3],
        items=[
            ScriptItem(
                kind="query",
                text=query,
                result=result,
                data={"source": source},
                phases=[Phase(name="searching"), Phase(name="found", delay_ms=SEARCH_MS)],
                settle_ms=SEARCH_GAP_MS,
            )
            for query, result, source in RESEARCH
        ],
    )


def letter_script() -> StepScript:
    return StepScript(
        index=4,
        label=STEP_LABELS[4],
        items=[
            ScriptItem(
                kind="line",
                text=line,
                settle_ms=BLANK_LINE_MS if line == "" else LINE_BASE_MS + LINE_PER_CHAR_MS * len(line),
            )
            for line in LETTER
        ],
    )


def submit_script() -> StepScript:
    items = [
        ScriptItem(
            kind="action",
            text=text,
            icon=icon,
            phases=[Phase(name="running"), Phase(name="done", delay_ms=ACTION_MS)],
            settle_ms=ACTION_GAP_MS,
        )
        for icon, text in ACTIONS
    ]
    items.append(
        ScriptItem(
            kind="confirmation",
            text="Appeal Successfully Submitted!",
            result=f"Confirmation #{SUBMISSION_CONFIRMATION} · Estimated response: 2-3 weeks",
            data={"confirmationNumber": SUBMISSION_CONFIRMATION},
        )
    )
    return StepScript(index=5, label=STEP_LABELS[5], items=items)


def advisor_script() -> StepScript:
    """
    Connect, then one transcript entry every interval; each entry after the
    first is followed by an insight a short offset later. The call ends one
    interval after the last entry plus the hang-up delay.
    """
    items = [
        ScriptItem(
            kind="call",
            text="Connecting to Zoom...",
            phases=[Phase(name="connecting"), Phase(name="live", delay_ms=CONNECT_MS)],
        )
    ]

    since_last_entry = 0
    for idx, (speaker, text) in enumerate(ADVISOR_SCRIPT):
        items.append(
            ScriptItem(
                kind="transcript",
                speaker=speaker,
                text=text,
                phases=[Phase(name="revealed", delay_ms=TRANSCRIPT_INTERVAL_MS - since_last_entry)],
            )
        )
        since_last_entry = 0
        if idx > 0 and idx - 1 < len(ADVISOR_INSIGHTS):
            items.append(
                ScriptItem(
                    kind="insight",
                    text=ADVISOR_INSIGHTS[idx - 1],
                    phases=[Phase(name="revealed", delay_ms=INSIGHT_OFFSET_MS)],
                )
            )
            since_last_entry = INSIGHT_OFFSET_MS

    items.append(
        ScriptItem(
            kind="call",
            text="Session ended",
            phases=[
                Phase(name="ended", delay_ms=TRANSCRIPT_INTERVAL_MS - since_last_entry + HANGUP_MS)
            ],
        )
    )
    return StepScript(index=6, label=STEP_LABELS[6], items=items)


def dashboard_script() -> StepScript:
    items = [
        ScriptItem(kind="stat", text=label, result=value, color=color)
        for label, value, color in DASHBOARD_STATS
    ]
    items.extend(
        ScriptItem(kind="pricing", text=tier["name"], result=tier["price"], data=tier)
        for tier in PRICING_TIERS
    )
    items.extend(ScriptItem(kind="sponsor", text=name, result=tag) for name, tag in SPONSORS)
    return StepScript(index=7, label=STEP_LABELS[7], items=items)


def build_scripts() -> List[StepScript]:
    """All steps in walkthrough order."""
    return [
        chat_script(),
        upload_script(),
        strategy_script(),
        research_script(),
        letter_script(),
        submit_script(),
        advisor_script(),
        dashboard_script(),
    ]
