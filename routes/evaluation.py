"""
Evaluation Routes - Endpoint for grading quiz answers.

This module provides:
- POST /api/evaluate-answer - Evaluate a single answer to a quiz question
"""

import logging

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from models.question import ChoiceQuestion, build_question
from services.answer_evaluation_service import EVALUATION_SERVICE_KEY

logger = logging.getLogger(__name__)

bp = Blueprint('evaluation', __name__, url_prefix='/api')


def coerce_answer(question, user_answer):
    """
    Coerce the submitted answer to the type its question expects.

    Choice questions accept an option index; a digit-only string such as
    "2" is read as an index, any other string is matched as option text.
    Every other question type is graded on text.

    Raises:
        ValueError: If the answer is not a string or an integer
    """
    if isinstance(user_answer, bool) or not isinstance(user_answer, (int, str)):
        raise ValueError("userAnswer must be a string or an integer")

    if isinstance(question, ChoiceQuestion):
        if isinstance(user_answer, str) and user_answer.strip().isdigit():
            return int(user_answer.strip())
        return user_answer

    return user_answer if isinstance(user_answer, str) else str(user_answer)


@bp.route('/evaluate-answer', methods=['POST'])
def evaluate_answer():
    """
    Evaluate a user's answer.

    Request Body:
        {
            "question": {
                "type": "open_ended",
                "question": "What does a mitochondrion do?",
                "expected_answers": ["It produces energy for the cell"]
            },
            "userAnswer": "makes energy for cells"
        }

    Returns:
        200: Evaluation result
            {
                "isCorrect": true,
                "usedSemanticEvaluator": true,
                "confidence": 0.85,
                "reasoning": "Same meaning as the expected answer",
                "method": "semantic"
            }
        400: Missing or invalid fields
            {
                "error": "Question and userAnswer are required"
            }
        500: Server error
            {
                "error": "Failed to evaluate answer"
            }
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    question_data = data.get('question')
    user_answer = data.get('userAnswer')

    if not isinstance(question_data, dict) or not question_data or user_answer is None:
        return jsonify({'error': 'Question and userAnswer are required'}), 400

    try:
        question = build_question(question_data)
        answer = coerce_answer(question, user_answer)
    except ValidationError as e:
        return jsonify({'error': f'Invalid question: {e.error_count()} validation error(s)'}), 400
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    try:
        service = current_app.extensions[EVALUATION_SERVICE_KEY]
        result = service.evaluate(question, answer)
    except Exception as e:
        logger.error(f"Failed to evaluate answer: {str(e)}", exc_info=True)
        return jsonify({'error': 'Failed to evaluate answer'}), 500

    return jsonify(result.to_dict()), 200
