"""Built-in relationship table and per-concept metadata for the TLC domain."""

from typing import Dict, List

DEFAULT_RELATIONSHIPS: Dict[str, Dict[str, List[str]]] = {
    # Core teaching-and-learning-cycle stages
    'field_building': {
        'builds_on': ['prior_knowledge_activation', 'vocabulary_development'],
        'enables': ['meaningful_modeling', 'student_readiness'],
        'complements': ['scaffolding_strategies', 'differentiation_approaches'],
        'applies_to': ['lesson_introduction', 'unit_beginning'],
    },
    'modeling': {
        'prerequisite': ['field_building_completion'],
        'builds_on': ['explicit_teaching_principles', 'think_aloud_strategies'],
        'enables': ['joint_construction_readiness', 'student_understanding'],
        'complements': ['interactive_demonstration', 'guided_practice'],
        'applies_to': ['text_deconstruction', 'skill_demonstration'],
    },
    'joint_construction': {
        'prerequisite': ['modeling_completion', 'student_engagement'],
        'builds_on': ['collaborative_learning_principles', 'shared_writing_techniques'],
        'enables': ['independent_construction_readiness', 'peer_learning'],
        'complements': ['discussion_protocols', 'feedback_strategies'],
        'applies_to': ['shared_writing', 'problem_solving_together'],
    },
    'independent_construction': {
        'prerequisite': ['joint_construction_mastery', 'confidence_building'],
        'builds_on': ['self_regulation_skills', 'metacognitive_strategies'],
        'enables': ['assessment_opportunities', 'individual_mastery'],
        'complements': ['formative_assessment', 'differentiated_support'],
        'applies_to': ['individual_tasks', 'assessment_activities'],
    },

    # Subject-specific
    'genre_based_teaching': {
        'builds_on': ['tlc_framework_understanding', 'text_analysis_skills'],
        'enables': ['subject_specific_literacy', 'academic_writing'],
        'complements': ['systemic_functional_linguistics', 'text_types'],
        'applies_to': ['english_teaching', 'cross_curricular_literacy'],
    },
    'scientific_literacy': {
        'builds_on': ['tlc_framework_understanding', 'inquiry_based_learning'],
        'enables': ['scientific_writing', 'investigation_reports'],
        'complements': ['5e_model_integration', 'hands_on_learning'],
        'applies_to': ['science_education', 'stem_subjects'],
    },

    # Differentiation and support
    'eal_d_support': {
        'builds_on': ['cultural_responsiveness', 'language_acquisition_theory'],
        'enables': ['inclusive_practice', 'multilingual_learning'],
        'complements': ['visual_supports', 'collaborative_learning'],
        'applies_to': ['diverse_classrooms', 'multicultural_settings'],
    },
    'learning_difficulties_support': {
        'builds_on': ['universal_design_principles', 'cognitive_load_theory'],
        'enables': ['accessible_learning', 'individual_success'],
        'complements': ['assistive_technology', 'multi_sensory_approaches'],
        'applies_to': ['inclusive_education', 'special_needs_support'],
    },

    # Assessment and feedback
    'formative_assessment': {
        'builds_on': ['assessment_for_learning_principles', 'feedback_theory'],
        'enables': ['learning_adjustment', 'student_self_regulation'],
        'complements': ['peer_assessment', 'self_assessment'],
        'applies_to': ['ongoing_monitoring', 'learning_improvement'],
    },
    'success_criteria': {
        'builds_on': ['learning_intentions', 'visible_learning_principles'],
        'enables': ['student_self_monitoring', 'goal_clarity'],
        'complements': ['rubric_development', 'exemplar_analysis'],
        'applies_to': ['assessment_design', 'student_guidance'],
    },
}

CONCEPT_COMPLEXITY: Dict[str, int] = {
    'field_building': 3,
    'modeling': 4,
    'joint_construction': 6,
    'independent_construction': 5,
    'genre_based_teaching': 7,
    'eal_d_support': 8,
    'formative_assessment': 6,
}

MASTERY_INDICATORS: Dict[str, List[str]] = {
    'field_building': [
        'Can activate prior knowledge effectively',
        'Builds vocabulary systematically',
        'Creates inclusive entry points',
    ],
    'modeling': [
        'Demonstrates thinking processes clearly',
        'Uses think-aloud effectively',
        'Provides interactive examples',
    ],
    'joint_construction': [
        'Facilitates collaborative creation',
        'Manages group dynamics well',
        'Guides shared decision-making',
    ],
}

# subject -> {application context: relevance to a user teaching that subject}
SUBJECT_RELEVANCE: Dict[str, Dict[str, float]] = {
    'english': {
        'genre_based_teaching': 0.9,
        'text_deconstruction': 0.9,
        'academic_writing': 0.8,
    },
    'science': {
        'scientific_literacy': 0.9,
        'investigation_reports': 0.8,
        'hands_on_learning': 0.8,
    },
}

DEFAULT_RELEVANCE = 0.5
