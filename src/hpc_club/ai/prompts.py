"""Prompt templates for the generative features (pt-BR, vestibular focus)."""

STUDY_PLAN_PROMPT = """\
Crie um plano de estudos de alta performance de 5 dias focado em {subject} \
para o exame {exam}. O aluno tem {hours} horas disponíveis por dia.

O plano deve ser intenso, focado em estratégia de prova e retenção ativa. \
Seja minimalista e direto.

Responda APENAS com um objeto JSON:
{{
    "weekly_goal": "<objetivo principal da semana em uma frase impactante>",
    "strategy_note": "<dica estratégica sobre como a banca do {exam} cobra esse conteúdo>",
    "schedule": [
        {{"day": "Dia 1", "focus": "<tópico macro>", \
"tasks": ["<2 a 3 atividades práticas>"], "tip": "<micro dica de performance>"}}
    ]
}}
"""

EXAM_ANALYSIS_PROMPT = """\
Atue como um Analista de Performance de Vestibulares de Elite (High Performance Coach).
Analise os seguintes resultados de um simulado {exam}:

Dados: {performance}. {essay}.

Forneça uma análise tática e direta (máximo 150 palavras) contendo:
1. O "Diagnóstico Brutal": onde o aluno está perdendo a aprovação?
2. A "Ação de Ouro": o que priorizar nos estudos desta semana para subir a média global.

Use tom profissional, sério e motivador. Use Markdown.
"""

EXAM_GENERATION_PROMPT = """\
Crie {count} questões inéditas estilo {exam} de {area}, nível {difficulty}.

MODO: {mode}
{mode_rules}

Cada questão deve ter enunciado claro, exatamente 5 alternativas (A a E), \
o índice da correta (0 a 4) e uma explicação detalhada.

Responda APENAS com um objeto JSON:
{{
    "questions": [
        {{
            "id": "1",
            "support_text": "<texto de apoio ou null>",
            "image_description": "<descrição de imagem/gráfico ou null>",
            "text": "<enunciado>",
            "options": ["A", "B", "C", "D", "E"],
            "correct_option_index": 2,
            "explanation": "<explicação>"
        }}
    ]
}}
"""

MARATHON_RULES = """\
REGRAS PARA MODO MARATONA (estilo real de prova):
1. Inclua TEXTOS DE APOIO longos e densos (notícias, livros, artigos científicos) antes do enunciado.
2. Inclua DESCRIÇÕES DE IMAGEM para simular gráficos, charges ou figuras.
3. As questões devem exigir interpretação do texto/imagem."""

QUICK_RULES = """\
REGRAS PARA MODO RÁPIDO:
1. Foque em enunciados diretos e curtos.
2. Sem textos gigantes de apoio."""

ESSAY_PROMPT = """\
Aja como um corretor especialista do ENEM.
Corrija a redação abaixo com o tema: "{topic}".

Responda APENAS com um objeto JSON:
{{
    "score": <0-1000>,
    "competencies": {{"c1": <0-200>, "c2": <0-200>, "c3": <0-200>, "c4": <0-200>, "c5": <0-200>}},
    "comments": ["<comentário>"],
    "improved_version": "<versão reescrita melhorada>"
}}
"""

NOTE_ANALYSIS_PROMPT = """\
Analise a nota de estudo enviada e extraia:
1. Um resumo executivo de 1 parágrafo (máximo 50 palavras).
2. As 5 palavras-chave mais importantes.

Responda APENAS com um objeto JSON: {"summary": "<resumo>", "keywords": ["<palavra>"]}
"""

NOTE_FLASHCARDS_PROMPT = """\
Crie de 5 a 10 flashcards de alta qualidade baseados no texto enviado.
Foque em testar conceitos-chave, fórmulas ou relações de causa e efeito.
Evite perguntas muito óbvias.

Responda APENAS com um objeto JSON: {"flashcards": [{"front": "<pergunta>", "back": "<resposta>"}]}
"""

REFINE_INSTRUCTIONS: dict[str, str] = {
    "improve": "Melhore a escrita deste texto, tornando-o mais claro, profissional e envolvente, "
               "mantendo o sentido original.",
    "fix": "Corrija erros gramaticais e de pontuação deste texto, mantendo o estilo original.",
    "shorter": "Resuma este texto de forma concisa, mantendo apenas os pontos cruciais.",
    "longer": "Expanda este texto, adicionando detalhes relevantes e explicações mais profundas "
              "sobre os conceitos mencionados.",
}

REFINE_SUFFIX = (
    "Retorne APENAS o texto reescrito, sem aspas e sem introduções do tipo "
    '"Aqui está a versão melhorada".'
)

NOTE_CONTENT_PROMPT = """\
Crie uma nota de estudo completa e detalhada sobre: "{topic}".

A nota deve ser formatada em Markdown e conter:
1. Título (H1)
2. Introdução (resumo do conceito)
3. Tópicos principais (H2) com explicações profundas
4. Exemplos práticos
5. Conclusão ou resumo

Seja didático, nível pré-vestibular/universitário.
Retorne APENAS o conteúdo da nota, sem conversas extras.
"""

ERROR_IMAGE_PROMPT = """\
Analise a imagem desta questão/erro e forneça:
1. Uma descrição concisa do erro ou da questão (o que é, sobre o que trata).
2. A matéria principal (Matemática, Física, etc.).
3. O provável motivo do erro: Conteúdo, Atenção, Interpretação ou Tempo.
4. 2 flashcards (frente/verso) para memorizar o conceito e evitar esse erro no futuro.

Responda APENAS com um objeto JSON:
{"description": "<texto>", "subject": "<matéria>", "cause": "<motivo>", \
"flashcards": [{"front": "<frente>", "back": "<verso>"}]}
"""

TUTOR_SYSTEM_PROMPT = """\
Você é um Professor Particular de Elite especializado em {subject} para \
pré-vestibulares (ENEM e UFRGS). Seu tom é encorajador, porém extremamente \
técnico e focado em alta performance.

Regras:
1. Explique conceitos complexos de forma didática, usando analogias.
2. Se o aluno perguntar algo fora do escopo de {subject}, redirecione gentilmente.
3. Sempre que possível, cite como esse conteúdo caiu em provas passadas do ENEM ou UFRGS.
4. Seja conciso. Evite respostas longas demais a menos que solicitado.
5. Use formatação Markdown (negrito, listas) para facilitar a leitura.
6. Para fórmulas matemáticas, use SEMPRE LaTeX entre cifrões: $E = mc^2$ \
na mesma linha e $$ ... $$ em bloco. Não use \\( ... \\) ou \\[ ... \\].
"""

TUTOR_GREETING = (
    "Olá! Sou seu tutor especialista em {subject}. "
    "Como posso te ajudar a destruir na prova hoje?"
)
