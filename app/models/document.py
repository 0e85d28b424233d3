"""
Database model for uploaded documents.

Supabase Table:

CREATE TABLE documents (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES auth.users(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    content TEXT,
    file_url TEXT,
    file_type TEXT,
    file_size INTEGER,
    analysis_status TEXT NOT NULL DEFAULT 'pending' CHECK (
        analysis_status IN ('pending', 'processing', 'completed', 'error')
    ),
    analysis_result JSONB,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);

CREATE INDEX idx_documents_user_id ON documents(user_id);

ALTER TABLE documents ENABLE ROW LEVEL SECURITY;

CREATE POLICY "Users can manage own documents" ON documents
    FOR ALL USING (auth.uid() = user_id);

CREATE POLICY "Service role full access documents" ON documents
    FOR ALL USING (auth.role() = 'service_role');

Storage bucket "documents" (public), objects keyed documents/{user_id}/{uuid}.{ext}
"""

from enum import Enum


class AnalysisStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


ANALYSIS_FIELDS = (
    "overview",
    "logic",
    "evidence",
    "assumptions",
    "clarity",
    "objections",
    "implementation",
    "recommendations",
)
