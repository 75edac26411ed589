"""Fixed catalog of recovery questions users may choose from."""
from typing import Dict, List

SECURITY_QUESTIONS: List[Dict[str, str]] = [
    {
        "id": "childhood_address",
        "question": "What was the house number and street name of your first childhood home?",
        "example": 'e.g., "1847 Maple Grove Lane" (specific address is unique)',
    },
    {
        "id": "first_pet_detail",
        "question": "What was your first pet's name and the month you got them?",
        "example": 'e.g., "Whiskers March" (combination is unique)',
    },
    {
        "id": "memorable_teacher",
        "question": "What was the full name of your most memorable teacher and what grade/subject?",
        "example": 'e.g., "Mrs. Elizabeth Rodriguez 7th Grade Math" (full name + context)',
    },
    {
        "id": "childhood_friend",
        "question": "What was your childhood best friend's full name and their middle initial?",
        "example": 'e.g., "Sarah M. Thompson" (full name with middle initial)',
    },
    {
        "id": "first_job_detail",
        "question": "What was your first job title and the name of your supervisor?",
        "example": 'e.g., "Cashier under Manager David Kim" (specific details)',
    },
    {
        "id": "birth_hospital",
        "question": "What was the name of the hospital where you were born and the city?",
        "example": 'e.g., "St. Mary\'s General Hospital Portland" (specific location)',
    },
    {
        "id": "dream_vacation",
        "question": "What was your dream vacation destination as a child and why?",
        "example": 'e.g., "Japan because of anime culture" (personal + specific reason)',
    },
    {
        "id": "unique_talent",
        "question": "What unique skill or talent did you have as a child that few people knew about?",
        "example": 'e.g., "Could solve Rubik\'s cube in 45 seconds" (specific achievement)',
    },
    {
        "id": "childhood_fear",
        "question": "What was your biggest childhood fear and how old were you when you overcame it?",
        "example": 'e.g., "Heights until age 12 at summer camp" (specific age + context)',
    },
    {
        "id": "first_concert",
        "question": "What was the first concert or live performance you attended and who did you go with?",
        "example": 'e.g., "Coldplay with my cousin Jessica" (specific event + person)',
    },
]

PROMPTS: Dict[str, str] = {q["id"]: q["question"] for q in SECURITY_QUESTIONS}
