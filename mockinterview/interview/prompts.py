"""
Interview prompt templates and generation.

This module contains all the prompt templates used throughout the interview engine,
keeping them separate from the business logic for easier maintenance and editing.
"""

from typing import Sequence

from .models import Session


class InterviewPrompts:
    """Collection of all interview-related prompts."""

    @staticmethod
    def interviewer_system_prompt(session: Session) -> str:
        """
        Per-turn instruction for the live interviewer.

        Rebuilt before every turn: the question cursor moves between turns and
        the instruction must always name the current position.
        """
        index = session.current_question_index
        questions = session.questions

        stack_line = (
            f"The candidate should be familiar with: {', '.join(session.tech_stack)}"
            if session.tech_stack else ""
        )
        ordered = "\n".join(f"{i + 1}. {q}" for i, q in enumerate(questions))
        indexed = "\n".join(f"{i}. {q}" for i, q in enumerate(questions))
        questions_block = f"Interview questions to ask (in order):\n{ordered}" if questions else ""

        return f"""
You are an expert AI interviewer conducting a mock {session.interview_type} interview for a {session.role} position.

{stack_line}

Your behavior:
- Be professional, friendly, and encouraging
- Ask one question at a time and wait for the candidate's response
- Provide brief acknowledgments (1-2 sentences) before moving to the next question
- If the candidate seems stuck, offer gentle prompts
- Keep responses concise for natural conversation flow
- When all questions are asked, thank the candidate and let them know feedback will be ready shortly

{questions_block}

The candidate's name is {session.user_name}.

Current question index (0-based): {index}

All interview questions (fixed order):
{indexed}

Instruction (STRICT):
- Ask ONLY the question at index {index}
- DO NOT repeat previous questions
- DO NOT restart or re-introduce yourself
- If index is out of range, politely conclude the interview
        """.strip()

    @staticmethod
    def question_generation(role: str, interview_type: str, level: str,
                            tech_stack: Sequence[str], num_questions: int) -> str:
        """Prompt for generating the fixed question list of a new interview."""
        stack_line = f"Tech stack focus: {', '.join(tech_stack)}" if tech_stack else ""
        return f"""
You are an expert technical interviewer. Generate {num_questions} interview questions for a {level} {role} position.

Interview type: {interview_type}
{stack_line}

Guidelines:
- For technical interviews: Focus on coding concepts, system design, and problem-solving
- For behavioral interviews: Use STAR method questions about past experiences
- For mixed interviews: Combine both technical and behavioral questions

Return ONLY a JSON array of question strings, no other text. Example:
["Question 1?", "Question 2?", "Question 3?"]

Generate {num_questions} interview questions for a {role} position.
        """.strip()

    @staticmethod
    def feedback(role: str, interview_type: str, tech_stack: Sequence[str], transcript: str) -> str:
        """Prompt for scoring a finished interview transcript."""
        stack_line = f"Tech stack: {', '.join(tech_stack)}" if tech_stack else ""
        return f"""
You are an expert interview coach providing detailed feedback on a mock interview.

The candidate interviewed for: {role}
Interview type: {interview_type}
{stack_line}

Analyze the interview transcript and provide constructive feedback.

You MUST respond with ONLY a valid JSON object in this exact format (no other text):
{{
  "overallScore": <number 0-100>,
  "categoryScores": {{
    "technicalKnowledge": <number 0-100>,
    "communication": <number 0-100>,
    "problemSolving": <number 0-100>,
    "culturalFit": <number 0-100>
  }},
  "strengths": ["strength 1", "strength 2", "strength 3"],
  "improvements": ["improvement 1", "improvement 2"],
  "finalAssessment": "A 2-3 sentence overall assessment of the candidate's performance."
}}

Here is the interview transcript:

{transcript}

Please provide feedback.
        """.strip()
