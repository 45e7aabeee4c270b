"""
Sample case-interview transcript: market entry for a coffee shop.

Used by the offline mock run and handy for trying the API by hand.
"""

CONSULTING_INTERVIEW = """
**Interviewer:** Good morning! Thanks for joining us today. Imagine you're a consultant, and a client wants to enter the coffee shop market in a mid-sized city. How would you approach helping them make this decision?

**Interviewee:** Good morning! Thanks for having me. Alright, so this is about entering the coffee shop market in a mid-sized city. My first step would be to analyze the market to understand if this is a viable opportunity for the client. Can I take a moment to structure my thoughts?

**Interviewer:** Sure, go ahead.

**Interviewee:** Great. So, I'd start with market demand—how many people in this city drink coffee, and how often? Then, I'd look at competition—who's already in the market, and how saturated is it? Next, I'd consider the supply side, location, pricing and marketing. Finally, I'd tie it all together with some financial estimates to see if it's profitable. Does that framework make sense as a starting point?

**Interviewer:** Yes, it's a solid framework. Let's say the city has about 200,000 people, with a mix of young professionals, students, and families. How would you proceed?

**Interviewee:** Perfect. With 200,000 people, I'd first estimate demand. Maybe there's some industry data—say, 60% of people drink coffee at least once a week. That's 120,000 potential customers. Let's say half prefer coffee shops, so 60,000 people. Does that sound reasonable?

**Interviewer:** Let's go with your assumption. Suppose there are 15 coffee shops in the city—three are national chains, and the rest are independent local spots.

**Interviewee:** Got it. So, 15 shops serving 60,000 customers means about 4,000 customers per shop on average, assuming even distribution—which probably isn't the case since chains might dominate. Let's assume each coffee shop has annual revenue of $500,000. With 15 shops, that's $7.5 million total market size. If our client captures 5% of that, that's $375,000 in revenue.

**Interviewer:** Let's say the three chains account for 50% of the market. Assume the market is growing at 5% per year.

**Interviewee:** Nice, so a $7.5 million market today becomes $7.875 million next year. Our client could aim for $400,000 in year one. But with a 15% margin, $400,000 revenue gives $60,000 profit. That's tight with startup costs, so I'll circle back to financials later.

**Interviewer:** Suppose there's a trend toward health-conscious choices—plant-based milks and organic coffee are gaining traction.

**Interviewee:** Perfect, that's actionable. We could offer oat or almond milk options and source organic beans. I'd test if they'll pay a premium—say, $4.50 versus $4 for a latte. Preferences like these could set us apart from chains.

**Interviewer:** Good rundown. So, what's your final recommendation?

**Interviewee:** I'd recommend the client proceed, but with a clear strategy: invest $200,000 upfront, target $400,000 revenue in year one by capturing 5% market share, and focus on plant-based options and sustainability to stand out. It's viable if they execute well. What do you think?

**Interviewer:** Well-structured and thoughtful. Thanks for walking me through it!
""".strip()
