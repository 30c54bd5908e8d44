"""
Service catalog: category -> canonical service name -> synonyms.

Insertion order is significant; search results within a match pass follow it.
"""

SERVICES: dict[str, dict[str, list[str]]] = {
    "Beauty & Personal Care": {
        "Hair Stylist": ["hairstylist", "hair dresser", "hair stylist", "haircut", "hair styling"],
        "Barber": ["barber", "haircut", "men hair", "beard trim"],
        "Makeup Artist": ["makeup", "makeup artist", "beauty", "cosmetics"],
        "Nail Technician": ["nail tech", "manicure", "pedicure", "nail art"],
        "Massage Therapist": ["massage", "therapist", "spa", "relaxation"],
        "Skincare Specialist": ["skincare", "facial", "beauty treatment", "skin care"],
    },
    "Home & Garden": {
        "Electrician": ["electrician", "electrical", "wiring", "power", "electric"],
        "Plumber": ["plumber", "plumbing", "pipe", "water", "drain"],
        "Carpenter": ["carpenter", "woodwork", "furniture", "carpentry"],
        "Painter": ["painter", "painting", "wall", "decorating"],
        "Gardener": ["gardener", "gardening", "landscaping", "plants"],
        "Cleaner": ["cleaner", "cleaning", "housekeeping", "maid"],
        "AC Technician": ["ac technician", "air conditioning", "cooling", "hvac"],
        "Generator Repair": ["generator", "power backup", "inverter", "electrical repair"],
    },
    "Education & Tutoring": {
        "Math Tutor": ["math tutor", "mathematics", "math teacher", "algebra"],
        "English Tutor": ["english tutor", "english teacher", "language", "grammar"],
        "Science Tutor": ["science tutor", "physics", "chemistry", "biology"],
        "Primary School Tutor": ["primary tutor", "elementary", "basic education"],
        "Secondary School Tutor": ["secondary tutor", "high school", "jss", "sss"],
        "University Tutor": ["university tutor", "university teacher", "higher education"],
        "Language Teacher": ["language teacher", "linguistics", "foreign language"],
        "Yoruba Teacher": ["yoruba teacher", "yoruba tutor", "yoruba language"],
        "Igbo Teacher": ["igbo teacher", "igbo tutor", "igbo language"],
        "Hausa Teacher": ["hausa teacher", "hausa tutor", "hausa language"],
        "Isoko Teacher": ["isoko teacher", "isoko tutor", "isoko language"],
        "Tiv Teacher": ["tiv teacher", "tiv tutor", "tiv language"],
        "French Teacher": ["french teacher", "french tutor", "french language"],
        "Spanish Teacher": ["spanish teacher", "spanish tutor", "spanish language"],
    },
    "Music & Entertainment": {
        "Pianist": ["pianist", "piano teacher", "piano lessons", "keyboard"],
        "Guitarist": ["guitarist", "guitar teacher", "guitar lessons", "acoustic guitar"],
        "Saxophonist": ["saxophonist", "saxophone teacher", "saxophone lessons"],
        "Drummer": ["drummer", "drum teacher", "drum lessons", "percussion"],
        "Vocalist": ["vocalist", "singer", "voice teacher", "singing lessons"],
        "DJ": ["dj", "disc jockey", "music mixing", "sound system"],
        "Event MC": ["mc", "master of ceremonies", "event host", "announcer"],
        "Birthday Clown": ["birthday clown", "party clown", "children entertainer"],
        "Mascot": ["mascot", "costume character", "event mascot"],
        "Party Planner": ["party planner", "event planner", "celebration organizer"],
    },
    "Food & Catering": {
        "Baker": ["baker", "baking", "cake", "pastry", "bread"],
        "Caterer": ["caterer", "catering", "food service", "event food"],
        "Chef": ["chef", "cooking", "culinary", "food preparation"],
        "Home Cook": ["home cook", "personal chef", "meal prep", "cooking service"],
    },
    "Technology": {
        "Computer Repair": ["computer repair", "laptop repair", "pc repair", "hardware"],
        "Phone Repair": ["phone repair", "mobile repair", "smartphone repair"],
        "Software Developer": ["software developer", "programmer", "coding", "web development"],
        "IT Support": ["it support", "technical support", "computer help", "tech support"],
        "Graphic Designer": ["graphic designer", "designer", "logo design", "visual design"],
    },
    "Transportation": {
        "Driver": ["driver", "chauffeur", "personal driver", "car service"],
        "Delivery Service": ["delivery", "courier", "package delivery", "logistics"],
        "Taxi Service": ["taxi", "cab", "ride service", "transport"],
    },
    "Health & Fitness": {
        "Personal Trainer": ["personal trainer", "fitness trainer", "gym trainer", "workout"],
        "Yoga Instructor": ["yoga instructor", "yoga teacher", "meditation"],
        "Physiotherapist": ["physiotherapist", "physical therapy", "rehabilitation", "physio"],
    },
    "Fashion & Tailoring": {
        "Tailor": ["tailor", "sewing", "clothing", "fashion design", "dressmaking"],
        "Fashion Designer": ["fashion designer", "clothing designer", "fashion", "style"],
        "Shoe Repair": ["shoe repair", "cobbler", "footwear repair", "shoe fixing"],
    },
    "Photography & Media": {
        "Photographer": ["photographer", "photography", "photo shoot", "camera"],
        "Videographer": ["videographer", "video production", "filming", "video editing"],
        "Event Photographer": ["event photographer", "wedding photographer", "party photos"],
    },
    "Business & Professional": {
        "Accountant": ["accountant", "bookkeeping", "financial", "tax preparation"],
        "Lawyer": ["lawyer", "attorney", "legal", "law"],
        "Consultant": ["consultant", "business consultant", "advisory", "strategy"],
        "Translator": ["translator", "translation", "language services", "interpreter"],
    },
}
