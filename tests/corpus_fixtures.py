"""Small topic corpus shared by the retrieval and service tests."""


def tlc_topics():
    """Five topics covering the four cycle stages plus one engagement topic."""
    return [
        {
            'id': 'field_building',
            'title': 'Field Building',
            'summary': 'Building field knowledge and vocabulary before writing',
            'keywords': ['field building', 'prior knowledge', 'vocabulary'],
            'teacher_queries': ['How do I start a new unit?'],
            'difficulty': 'beginner',
            'category': 'stage',
        },
        {
            'id': 'modeling',
            'title': 'Modeling and Deconstruction',
            'summary': 'Teacher demonstrates a model text',
            'keywords': ['modeling', 'deconstruction'],
            'difficulty': 'intermediate',
            'category': 'stage',
        },
        {
            'id': 'joint_construction',
            'title': 'Joint Construction',
            'summary': 'Class composes a text with teacher guidance',
            'keywords': ['joint construction', 'collaboration', 'scaffolding'],
            'teacher_queries': ['How do I run joint construction?'],
            'difficulty': 'intermediate',
            'category': 'stage',
        },
        {
            'id': 'independent_construction',
            'title': 'Independent Construction',
            'summary': 'Students compose texts independently',
            'keywords': ['independent writing', 'assessment'],
            'difficulty': 'advanced',
            'category': 'stage',
        },
        {
            'id': 'engagement_strategies',
            'title': 'Engagement Strategies',
            'summary': 'Keep students motivated and participating',
            'keywords': ['engagement', 'motivation'],
            'content': {'sections': [{'text': 'Use science experiments to spark curiosity'}]},
            'difficulty': 'beginner',
            'category': 'classroom',
        },
    ]
