from __future__ import annotations

from ..types import ClientRecord, ReportInput


SAMPLE_CLIENT = {
    'name': 'Alex Morgan',
    'email': 'alex.morgan@example.com',
    'contact': '+1 (555) 012-3456',
    'country': 'United States',
    'currency': 'USD',
    'flag': '🇺🇸',
}

SAMPLE_ANALYSIS = {
    'projectName': 'SaaS Project Manager',
    'projectOverview': (
        'The client aims to build a comprehensive SaaS platform for project management. '
        'The goal is to streamline collaboration and improve productivity for remote teams.\n'
        'Key objectives include centralized tracking, real-time updates, and automated reporting.'
    ),
    'scopeOfWork': (
        'Phase 1: Discovery & Design\n- Requirement gathering\n- UI/UX Wireframes\n\n'
        'Phase 2: MVP Development\n- User Authentication\n- Task Management Board\n- Basic Reporting\n\n'
        'Phase 3: Testing & Launch\n- QA Testing\n- Deployment to AWS\n- User Training'
    ),
    'timeline': (
        'Total Duration: 12-14 Weeks\n- Discovery: 2 Weeks\n- Design: 3 Weeks\n'
        '- Development: 8 Weeks\n- UAT & Launch: 1 Week'
    ),
    'technologies': (
        'Frontend: Next.js, Tailwind CSS\nBackend: Node.js, Express\n'
        'Database: PostgreSQL\nCloud: AWS (EC2, S3, RDS)'
    ),
    'investment': (
        'Total Estimated Cost: $15,000 - $20,000\n- Design: $3,000\n'
        '- Development: $12,000\n- Deployment & Support: $3,000'
    ),
    'paymentTerms': '50% Advance to Initiate\n50% After Project Completion',
    'deliverables': (
        '1. **Source Code Repository**: Complete ownership of Github repository with full version history.\n'
        '2. **Admin Dashboard**: Web-based control panel to manage users, content, and analytics.\n'
        '3. **User Application**: Fully functional mobile/web app deployed to production.\n'
        '4. **Technical Documentation**: Architecture diagrams, API references, and setup guides.\n'
        '5. **3 Months Support**: Priority bug fixing and server monitoring post-launch.'
    ),
}


def sample_report_input() -> ReportInput:
    return ReportInput(client=ClientRecord.model_validate(SAMPLE_CLIENT), analysis=dict(SAMPLE_ANALYSIS))
