"""LearnHub API: learner progress, certificates, gamification and notifications."""
