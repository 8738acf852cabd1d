#!/usr/bin/env python3
# src/mcp_sse_relay/tools/prompt_templates.py
"""
Prompt templates for the LLM tool.

Templates carry a system prompt and a user prompt with ``{{variable}}``
placeholders that are substituted at render time.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PromptTemplate:
    name: str
    description: str
    system_prompt: str
    user_prompt: str
    variables: tuple[str, ...]
    category: str


@dataclass(frozen=True)
class RenderedPrompt:
    system_prompt: str
    user_prompt: str
    template: PromptTemplate


class TemplateNotFoundError(KeyError):
    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(template_id)

    def __str__(self) -> str:
        return f"模板不存在: {self.template_id}"


BUILTIN_TEMPLATES: dict[str, PromptTemplate] = {
    "code-review": PromptTemplate(
        name="代码审查",
        description="专业的代码审查模板",
        system_prompt="你是一个资深的代码审查专家，请仔细审查以下代码，提供详细的改进建议。",
        user_prompt=(
            "请审查以下代码：\n\n{{code}}\n\n请从以下几个方面进行分析：\n"
            "1. 代码质量和可读性\n2. 性能优化建议\n3. 安全性问题\n4. 最佳实践建议"
        ),
        variables=("code",),
        category="code",
    ),
    "code-optimization": PromptTemplate(
        name="代码优化",
        description="代码性能优化模板",
        system_prompt="你是一个性能优化专家，请分析代码并提供优化建议。",
        user_prompt="请优化以下代码的性能：\n\n{{code}}\n\n优化目标：{{goal}}\n\n请提供具体的优化方案和预期效果。",
        variables=("code", "goal"),
        category="code",
    ),
    "article-writing": PromptTemplate(
        name="文章写作",
        description="专业文章写作模板",
        system_prompt="你是一个专业的写作助手，擅长创作高质量的文章。",
        user_prompt=(
            "请写一篇关于{{topic}}的文章。\n\n要求：\n- 字数：{{wordCount}}字\n- 风格：{{style}}\n"
            "- 目标读者：{{audience}}\n\n请确保文章结构清晰，内容充实，语言流畅。"
        ),
        variables=("topic", "wordCount", "style", "audience"),
        category="writing",
    ),
    "email-writing": PromptTemplate(
        name="邮件写作",
        description="商务邮件写作模板",
        system_prompt="你是一个商务沟通专家，擅长撰写专业的商务邮件。",
        user_prompt="请帮我写一封{{type}}邮件。\n\n收件人：{{recipient}}\n主题：{{subject}}\n内容要点：{{points}}\n语气：{{tone}}",
        variables=("type", "recipient", "subject", "points", "tone"),
        category="writing",
    ),
    "technical-translation": PromptTemplate(
        name="技术文档翻译",
        description="技术文档专业翻译模板",
        system_prompt="你是一个专业的技术文档翻译专家，精通中英文技术术语。",
        user_prompt=(
            "请将以下{{sourceLang}}技术文档翻译成{{targetLang}}：\n\n{{text}}\n\n要求：\n"
            "- 保持技术术语的准确性\n- 保持原文的逻辑结构\n- 确保翻译的专业性和可读性"
        ),
        variables=("sourceLang", "targetLang", "text"),
        category="translation",
    ),
    "data-analysis": PromptTemplate(
        name="数据分析",
        description="数据分析报告模板",
        system_prompt="你是一个数据分析专家，擅长从数据中提取有价值的洞察。",
        user_prompt=(
            "请分析以下数据：\n\n{{data}}\n\n分析维度：{{dimensions}}\n\n请提供：\n"
            "1. 数据概览\n2. 关键发现\n3. 趋势分析\n4. 建议和结论"
        ),
        variables=("data", "dimensions"),
        category="analysis",
    ),
    "brainstorming": PromptTemplate(
        name="头脑风暴",
        description="创意头脑风暴模板",
        system_prompt="你是一个创意专家，擅长激发创新思维和提供创意方案。",
        user_prompt=(
            "请为{{topic}}进行头脑风暴，提供{{count}}个创意方案。\n\n约束条件：{{constraints}}\n\n"
            "请确保每个方案都具有可行性和创新性。"
        ),
        variables=("topic", "count", "constraints"),
        category="creative",
    ),
    "learning-guide": PromptTemplate(
        name="学习指南",
        description="个性化学习指南模板",
        system_prompt="你是一个教育专家，擅长制定个性化的学习计划。",
        user_prompt=(
            "请为{{subject}}制定一个学习指南。\n\n学习者背景：{{background}}\n学习目标：{{goals}}\n"
            "时间安排：{{timeframe}}\n\n请提供详细的学习路径和资源推荐。"
        ),
        variables=("subject", "background", "goals", "timeframe"),
        category="education",
    ),
}


@dataclass
class PromptTemplateManager:
    templates: dict[str, PromptTemplate] = field(default_factory=lambda: dict(BUILTIN_TEMPLATES))

    def get_template(self, template_id: str) -> PromptTemplate | None:
        return self.templates.get(template_id)

    def get_templates_by_category(self, category: str) -> dict[str, PromptTemplate]:
        return {tid: t for tid, t in self.templates.items() if t.category == category}

    def add_template(self, template_id: str, template: PromptTemplate) -> None:
        self.templates[template_id] = template

    def remove_template(self, template_id: str) -> None:
        self.templates.pop(template_id, None)

    def render(self, template_id: str, variables: dict[str, str]) -> RenderedPrompt:
        """Substitute every ``{{key}}`` in both prompts; unknown keys are left as-is."""
        template = self.templates.get(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)

        system_prompt = template.system_prompt
        user_prompt = template.user_prompt
        for key, value in variables.items():
            placeholder = "{{" + key + "}}"
            system_prompt = system_prompt.replace(placeholder, str(value))
            user_prompt = user_prompt.replace(placeholder, str(value))

        return RenderedPrompt(system_prompt=system_prompt, user_prompt=user_prompt, template=template)
